"""
FLASK APP ENTRY POINT - AUTH BACKEND SERVER
==================================================

Sets up the Flask app, enables CORS and registers the entry API blueprint.

MAIN FEATURES
- create_app() opens the entry store once and keeps it on app.config
- CORS enabled for frontend integration
- GET / lists the available endpoints
"""
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from core.config import AuthConfig, load_config
from database.entry_store import SecretBackedEntryStore
from database.secret_storage import KeyringSecretStorage


def create_app(config: Optional[AuthConfig] = None, store: Optional[SecretBackedEntryStore] = None) -> Flask:
    """
    Build the Flask app.

    Arguments:
        config: settings; None -> load_config() (environment)
        store: an already opened store (tests); None -> opened from config
    """
    if config is None:
        config = load_config()
    if store is None:
        secret_storage = KeyringSecretStorage(config.keyring_service) if config.use_secret_storage else None
        store = SecretBackedEntryStore.open(config.database_path, secret_storage)

    app = Flask(__name__)
    app.config['AUTH_CONFIG'] = config
    app.config['ENTRY_STORE'] = store

    # Allow a frontend on another origin to call the API
    CORS(app)

    from backend.routes import entries_bp
    app.register_blueprint(entries_bp)

    @app.route('/', methods=['GET'])
    def index():
        return jsonify({
            "service": "auth",
            "endpoints": [
                "GET /api/entries",
                "POST /api/entries",
                "GET /api/entries/<token>",
                "GET /api/entries/<token>/code",
                "PATCH /api/entries/<token>",
                "DELETE /api/entries/<token>",
            ],
        })

    return app


# Only runs when executed directly (not on import)
if __name__ == '__main__':
    """
    Development server:
    - host='127.0.0.1': secrets are served, keep it local
    - port=5000
    """
    create_app().run(debug=False, host='127.0.0.1', port=5000)
