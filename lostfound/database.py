import os
import logging
import firebase_admin
from firebase_admin import credentials, firestore

_logger = logging.getLogger(__name__)
_db = None


def _resolve_credentials_path():
    """Find the service account key: env vars first, then the config folder, project root and cwd."""
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    config_credentials_path = os.path.join(project_root, 'config', 'credentials', 'firebaseAdminKey.json')
    default_path = os.path.join(project_root, 'firebaseAdminKey.json')

    path = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS') or os.environ.get('FIREBASE_ADMIN_KEY_PATH')
    if not path:
        for candidate in (config_credentials_path, default_path, os.path.join(os.getcwd(), 'firebaseAdminKey.json')):
            if os.path.isfile(candidate):
                path = candidate
                break
    # Last resort: write JSON from env to config path
    if not path or not os.path.isfile(path):
        env_json = os.environ.get('FIREBASE_ADMIN_KEY_JSON')
        if env_json:
            os.makedirs(os.path.dirname(config_credentials_path), exist_ok=True)
            with open(config_credentials_path, 'w', encoding='utf-8') as f:
                f.write(env_json)
            path = config_credentials_path
    return path


def initialize_firebase():
    """Initialize Firebase Admin SDK with the provided credentials"""
    try:
        path = _resolve_credentials_path()
        if path:
            firebase_admin.initialize_app(credentials.Certificate(path))
        else:
            # Application default credentials (e.g. on Cloud Run)
            _logger.info('No service account key found; using application default credentials')
            firebase_admin.initialize_app()
    except ValueError:
        # App already initialized
        pass

    return firestore.client()


def get_db():
    """Get the Firestore client, initializing Firebase on first use"""
    global _db
    if _db is None:
        _db = initialize_firebase()
    return _db
