import hmac
import secrets
from functools import wraps
from flask import request, jsonify, current_app


def generate_api_key(num_bytes: int = 32) -> str:
    """Returns a random hex API key (64 characters for the default 32 bytes)."""
    return secrets.token_hex(num_bytes)


def extract_bearer_token(auth_header: str) -> str:
    if not auth_header or not auth_header.startswith("Bearer "):
        return ""
    return auth_header[len("Bearer "):].strip()


def is_valid_api_key(token: str, expected: str) -> bool:
    if not token or not expected:
        return False
    return hmac.compare_digest(token.encode(), expected.encode())


def api_key_required(f):
    """Rejects the request with 401 unless it carries `Authorization: Bearer <API_KEY>`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_bearer_token(request.headers.get("Authorization"))
        if not is_valid_api_key(token, current_app.config.get('API_KEY', '')):
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function
