"""
This module provides a command-line interface for managing the users block.
It handles argument parsing, sets up logging, builds the remote store and the
request handler, and prints the handler's JSON response.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from getpass import getpass
from pathlib import Path

from remote.github_store import GitHubFileStore
from usergate.config import StoreConfig
from usergate.errors import UserStoreError
from usergate.gate import LoginAttemptStore, LoginGate
from usergate.handler import UsersRequestHandler
from usergate.logger import setup_logging

log = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parses command-line arguments for the user store CLI.
    """
    parser = argparse.ArgumentParser(description="Manage the USERS block stored in a hosted source file")
    parser.add_argument('--config', type=Path, help='YAML file with settings (env vars still win)')
    parser.add_argument('--log-file', default='usergate.log', help='Where to write debug logs')

    admin = argparse.ArgumentParser(add_help=False)
    admin.add_argument('--admin-user', default='admin')
    admin.add_argument('--admin-pass', help='Prompted for when omitted')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('list', parents=[admin], help='List users (admin excluded)')

    create = sub.add_parser('create', parents=[admin], help='Create a user')
    create.add_argument('username')
    create.add_argument('password')
    create.add_argument('expires_at', help='YYYY-MM-DD')

    edit = sub.add_parser('edit', parents=[admin], help='Edit a user')
    edit.add_argument('username')
    edit.add_argument('--new-username')
    edit.add_argument('--password')
    edit.add_argument('--expires-at', help='YYYY-MM-DD')

    delete = sub.add_parser('delete', parents=[admin], help='Delete a user')
    delete.add_argument('username')

    login = sub.add_parser('login', help='Check a user login against the current records')
    login.add_argument('username')
    login.add_argument('--password', help='Prompted for when omitted')

    serve = sub.add_parser('serve', help='Run the HTTP handler')
    serve.add_argument('--host', default='127.0.0.1')
    serve.add_argument('--port', type=int, default=8000)

    return parser.parse_args(argv)


def build_request(args) -> dict:
    payload = {}
    if args.command == 'create':
        payload = {"username": args.username, "password": args.password, "expiresAt": args.expires_at}
    elif args.command == 'edit':
        payload = {
            "username": args.username,
            "newUsername": args.new_username,
            "password": args.password,
            "expiresAt": args.expires_at,
        }
    elif args.command == 'delete':
        payload = {"username": args.username}

    return {
        "action": args.command,
        "adminUser": args.admin_user,
        "adminPass": args.admin_pass or getpass("Admin password: "),
        "payload": payload,
    }


def main(argv=None) -> int:
    """
    Main function for the CLI. Runs one admin action, a login check, or the server.
    """
    args = parse_args(argv)
    setup_logging(args.log_file)

    cfg = StoreConfig.load(args.config) if args.config else StoreConfig.from_env()
    handler = UsersRequestHandler(GitHubFileStore(cfg), cfg)

    if args.command == 'serve':
        from server.app import create_app

        log.info(f"Serving on http://{args.host}:{args.port}", extra={'log_type': 'INFO'})
        create_app(handler).run(host=args.host, port=args.port)
        return 0

    if args.command == 'login':
        try:
            records = handler.load_users().records
        except UserStoreError as e:
            log.error("Could not load users: %s", e.message, extra={'log_type': 'ERROR'})
            return 1
        gate = LoginGate(
            records,
            LoginAttemptStore(cfg.attempts_path),
            max_attempts=cfg.max_login_attempts,
            lockout_hours=cfg.lockout_hours,
        )
        result = gate.login(args.username, args.password or getpass("Password: "))
        log.info(result.message, extra={'log_type': 'LOGIN'})
        return 0 if result.ok else 1

    response = handler.handle("POST", build_request(args))
    print(json.dumps(response.body, ensure_ascii=False, indent=2))
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
