"""
Entry point for admin requests against the users block.

Each request reads the source file fresh, authenticates the caller against the
privileged record, applies the action in memory and, for mutating actions, commits
the rewritten file back in a single update.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from usergate.config import StoreConfig
from usergate.errors import AuthError, Forbidden, MethodNotAllowed, ParseError, UserStoreError, ValidationError
from usergate.evaluator import evaluate_block
from usergate.extractor import Block, extract_block
from usergate.mutator import ACTIONS, RecordMutator
from usergate.records import UserRecord
from usergate.serializer import serialize_block

log = logging.getLogger(__name__)


class FileStore(Protocol):
    def get_file(self) -> Any: ...

    def put_file(self, content: str, sha: str, message: str) -> dict[str, Any]: ...


@dataclass
class HandlerResponse:
    status_code: int
    body: dict[str, Any]

    def to_event(self) -> dict[str, Any]:
        return {"statusCode": self.status_code, "body": json.dumps(self.body, ensure_ascii=False)}


@dataclass
class LoadedUsers:
    source: str
    sha: str
    block: Block
    records: list[UserRecord]


class UsersRequestHandler:
    def __init__(self, store: FileStore, cfg: Optional[StoreConfig] = None, clock=None) -> None:
        self.store = store
        self.cfg = cfg or StoreConfig()
        self.mutator = RecordMutator(admin_username=self.cfg.admin_username)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def load_users(self) -> LoadedUsers:
        """Fetches the source file and reads the users block out of it."""
        remote = self.store.get_file()
        block = extract_block(remote.content, name=self.cfg.block_name)
        if block is None:
            raise ParseError(f"No {self.cfg.block_name} block found in {self.cfg.file_path}")
        records = evaluate_block(block.text)
        return LoadedUsers(source=remote.content, sha=remote.sha, block=block, records=records)

    def authenticate(self, records: list[UserRecord], admin_user: str, admin_pass: str) -> UserRecord:
        admin = next((r for r in records if r.username == self.cfg.admin_username), None)
        if admin is None or admin_user != admin.username or admin_pass != admin.password:
            raise AuthError("Invalid admin credentials")
        if admin.is_expired(self._clock()):
            raise Forbidden("Admin account has expired")
        return admin

    def handle(self, method: str, body: Any) -> HandlerResponse:
        """Runs one request and maps every failure to exactly one status code."""
        try:
            return self._handle(method, body)
        except UserStoreError as e:
            log.warning("Request failed (%d): %s", e.status_code, e.message, extra={"log_type": "WARNING"})
            return HandlerResponse(e.status_code, {"error": e.message})
        except Exception as e:
            log.exception("Unexpected error while handling request")
            return HandlerResponse(500, {"error": str(e)})

    def handle_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """Serverless-style entry point: `{httpMethod, body}` in, `{statusCode, body}` out."""
        method = event.get("httpMethod", "")
        raw = event.get("body") or "{}"
        try:
            body = json.loads(raw)
        except ValueError:
            if method.upper() != "POST":
                return self.handle(method, {}).to_event()
            return HandlerResponse(400, {"error": "Request body is not valid JSON"}).to_event()
        return self.handle(method, body).to_event()

    def _handle(self, method: str, body: Any) -> HandlerResponse:
        if (method or "").upper() != "POST":
            raise MethodNotAllowed("Use POST")
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        action = body.get("action")
        admin_user = body.get("adminUser")
        admin_pass = body.get("adminPass")
        if not action or not admin_user or not admin_pass:
            raise ValidationError("Missing parameters: action, adminUser and adminPass are required")
        if action not in ACTIONS:
            raise ValidationError(f"Unknown action: {action!r}")

        log.info("Request: action=%s", action, extra={"log_type": "REQUEST"})

        loaded = self.load_users()
        self.authenticate(loaded.records, str(admin_user), str(admin_pass))

        result = self.mutator.apply(loaded.records, action, body.get("payload"))
        if not result.changed:
            return HandlerResponse(200, {"users": [r.to_public() for r in result.users or []]})

        block_text = serialize_block(
            result.records,
            name=self.cfg.block_name,
            indent=self.cfg.record_indent,
            today=self._clock().date(),
        )
        new_source = loaded.block.splice(loaded.source, block_text)
        commit = self.store.put_file(new_source, loaded.sha, self.cfg.commit_message(action))
        log.info("Committed '%s' for %s", action, result.detail.get("username"), extra={"log_type": "COMMIT"})
        return HandlerResponse(200, {"success": True, "result": commit})
