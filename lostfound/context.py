"""
Per-app wiring: the directory store, notification dispatcher and services a
request works with. Tests (or alternative deployments) can pre-seed any of
these in app.config; otherwise the Firestore-backed defaults are built on
first use.
"""
from flask import current_app

from .config import get_app_config
from .database import get_db
from .services.claim_service import ClaimService
from .services.directory_store import FirestoreDirectoryStore
from .services.item_service import ItemService
from .services.notification_service import build_dispatcher
from .services.relay_service import NotificationRelay


def get_settings():
    settings = current_app.config.get('LOSTFOUND_SETTINGS')
    if settings is None:
        settings = get_app_config()
        current_app.config['LOSTFOUND_SETTINGS'] = settings
    return settings


def get_store():
    store = current_app.config.get('DIRECTORY_STORE')
    if store is None:
        store = FirestoreDirectoryStore(get_db())
        current_app.config['DIRECTORY_STORE'] = store
    return store


def get_dispatcher():
    dispatcher = current_app.config.get('NOTIFICATION_DISPATCHER')
    if dispatcher is None:
        dispatcher = build_dispatcher(get_settings(), get_store())
        current_app.config['NOTIFICATION_DISPATCHER'] = dispatcher
    return dispatcher


def get_claim_service() -> ClaimService:
    settings = get_settings()
    return ClaimService(get_store(), get_dispatcher(), min_proof_length=settings['min_proof_length'])


def get_item_service() -> ItemService:
    settings = get_settings()
    return ItemService(
        get_store(),
        min_secret_proof_length=settings['min_secret_proof_length'],
        max_image_data_length=settings['max_image_data_length'],
    )


def get_relay() -> NotificationRelay:
    relay = current_app.config.get('NOTIFICATION_RELAY')
    if relay is None:
        relay = NotificationRelay(get_store())
        current_app.config['NOTIFICATION_RELAY'] = relay
    return relay
