"""
ENTRY API ROUTES - FLASK BLUEPRINT

JSON endpoints over the same entry store the `auth` CLI uses.
<token> is an entry id, its # in the listing, or its name.

EXAMPLES:
curl http://localhost:5000/api/entries
curl -X POST http://localhost:5000/api/entries -H "Content-Type: application/json" -d '{"name": "github", "secret": "JBSWY3DPEHPK3PXP"}'
curl http://localhost:5000/api/entries/github/code
curl -X PATCH http://localhost:5000/api/entries/1 -H "Content-Type: application/json" -d '{"digits": 8}'
curl -X DELETE http://localhost:5000/api/entries/1
"""

import logging
import time

from flask import Blueprint, current_app, jsonify, request

from core.errors import (
    AuthError,
    EntryNotFound,
    SecretStorageFailed,
    SecretUnavailable,
    ValidationError,
)
from core.otp_core import seconds_remaining, totp

logger = logging.getLogger(__name__)

entries_bp = Blueprint('entries', __name__, url_prefix='/api')


def _store():
    return current_app.config['ENTRY_STORE']


def _entry_json(entry) -> dict:
    return {
        "id": entry.id,
        "name": entry.name,
        "digits": entry.digits,
        "period": entry.period,
    }


def _json_body(required: bool = True) -> dict:
    """The request body as a JSON object; anything else is a ValidationError."""
    data = request.get_json(silent=True)
    if data is None and not required:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _int_field(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"'{key}' must be an integer")
    return value


def _str_field(data: dict, key: str):
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    return value


@entries_bp.errorhandler(AuthError)
def handle_auth_error(error: AuthError):
    """Map the error taxonomy onto HTTP status codes."""
    if isinstance(error, ValidationError):
        status = 400
    elif isinstance(error, EntryNotFound):
        status = 404
    elif isinstance(error, SecretStorageFailed):
        status = 503
    elif isinstance(error, SecretUnavailable):
        status = 409
    else:
        status = 500
    logger.info("Request failed (%d): %s", status, error)
    return jsonify({"error": str(error)}), status


@entries_bp.route('/entries', methods=['GET'])
def list_entries():
    """
    LIST ENTRIES WITH CURRENT CODES

      curl http://localhost:5000/api/entries

    Fails as a whole (503) if any secret could not be loaded.
    """
    rows = _store().list_codes()
    return jsonify([
        dict(_entry_json(row.entry), number=row.ordinal, code=row.code, remaining=row.remaining)
        for row in rows
    ])


@entries_bp.route('/entries', methods=['POST'])
def add_entry():
    """
    ADD AN ENTRY

    Input (JSON body):
      {
        "name": "github",             # REQUIRED
        "secret": "JBSWY3DPEHPK3PXP", # REQUIRED - Base32
        "digits": 6,                  # 6-8
        "period": 30                  # seconds
      }
    """
    data = _json_body()
    if 'name' not in data or 'secret' not in data:
        return jsonify({"error": "Name and secret are required"}), 400

    store = _store()
    name = _str_field(data, 'name')
    secret = _str_field(data, 'secret')
    digits = _int_field(data, 'digits')
    period = _int_field(data, 'period')
    if not name or secret is None:
        return jsonify({"error": "Name and secret cannot be empty"}), 400

    result = store.add(
        name,
        secret,
        digits if digits is not None else current_app.config['AUTH_CONFIG'].default_digits,
        period if period is not None else current_app.config['AUTH_CONFIG'].default_period,
    )
    return jsonify(dict(_entry_json(result.entry), warnings=[str(w) for w in result.warnings])), 201


@entries_bp.route('/entries/<string:token>', methods=['GET'])
def entry_info(token):
    """
    ENTRY DETAILS (including secret and current code)

      curl http://localhost:5000/api/entries/github
    """
    info = _store().info(token)
    return jsonify(dict(_entry_json(info.entry), secret=info.secret, code=info.code, remaining=info.remaining))


@entries_bp.route('/entries/<string:token>/code', methods=['GET'])
def entry_code(token):
    """
    CURRENT CODE ONLY

      curl http://localhost:5000/api/entries/2/code
    """
    store = _store()
    entry = store.find(token)
    now = time.time()
    code = totp(store.secret_for(entry), entry.digits, entry.period, now)
    return jsonify({"id": entry.id, "code": code, "remaining": seconds_remaining(entry.period, now)})


@entries_bp.route('/entries/<string:token>', methods=['PATCH'])
def edit_entry(token):
    """
    EDIT AN ENTRY

    Any of "name", "secret", "digits", "period"; missing keys keep their value.
    """
    data = _json_body(required=False)
    result = _store().edit(
        token,
        name=_str_field(data, 'name'),
        secret=_str_field(data, 'secret'),
        digits=_int_field(data, 'digits'),
        period=_int_field(data, 'period'),
    )
    return jsonify(dict(_entry_json(result.entry), warnings=[str(w) for w in result.warnings]))


@entries_bp.route('/entries/<string:token>', methods=['DELETE'])
def remove_entry(token):
    """
    REMOVE AN ENTRY

    Secret storage cleanup is best effort; problems are listed in "warnings".
    """
    result = _store().remove(token)
    status = 200 if result.removed else 500
    return jsonify({
        "removed": result.removed,
        "entry": _entry_json(result.entry),
        "warnings": [str(w) for w in result.warnings],
    }), status
