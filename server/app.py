"""
Flask application exposing the users request handler over HTTP.
"""
from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from usergate.handler import HandlerResponse, UsersRequestHandler

log = logging.getLogger(__name__)

ROUTES = ("/.netlify/functions/updateusers", "/api/users")


def create_app(handler: UsersRequestHandler) -> Flask:
    app = Flask(__name__)

    def update_users():
        if request.method != "POST":
            response = handler.handle(request.method, {})
        else:
            body = request.get_json(force=True, silent=True)
            if body is None:
                response = HandlerResponse(400, {"error": "Request body is not valid JSON"})
            else:
                response = handler.handle(request.method, body)
        return jsonify(response.body), response.status_code

    for rule in ROUTES:
        app.add_url_rule(
            rule,
            endpoint=f"update_users{rule.replace('/', '_').replace('.', '_')}",
            view_func=update_users,
            methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        )

    log.info("Routes registered: %s", ", ".join(ROUTES), extra={"log_type": "INFO"})
    return app
