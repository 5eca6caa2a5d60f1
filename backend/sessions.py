# backend/sessions.py
"""
Bearer-token sessions kept in process memory.

Tokens never expire and are lost on restart; logging out or deleting the
account is the only way to drop them.
"""
import secrets
import threading
from functools import wraps

from flask import current_app, g, jsonify, request


class SessionStore:

    def __init__(self):
        self._tokens = {}
        self._lock = threading.Lock()

    def create(self, user_id):
        token = secrets.token_hex(32)
        with self._lock:
            self._tokens[token] = user_id
        return token

    def resolve(self, token):
        if not token:
            return None
        with self._lock:
            return self._tokens.get(token)

    def revoke(self, token):
        with self._lock:
            self._tokens.pop(token, None)

    def revoke_user(self, user_id):
        with self._lock:
            for token in [t for t, uid in self._tokens.items() if uid == user_id]:
                del self._tokens[token]

    def __len__(self):
        with self._lock:
            return len(self._tokens)


def init_app(app):
    app.extensions["sessions"] = SessionStore()


def get_sessions():
    return current_app.extensions["sessions"]


def bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        user_id = get_sessions().resolve(token)
        if user_id is None:
            return jsonify({"message": "Not authenticated"}), 401

        g.token = token
        g.user_id = user_id
        return view(*args, **kwargs)

    return wrapper
