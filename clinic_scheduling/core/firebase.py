"""Firebase Admin SDK initialization."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from structlog import get_logger

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(
    firebase_credentials_path: str | None = None, firebase_config_json: str | None = None
) -> bool:
    """
    Initialize Firebase Admin SDK for push delivery.

    Args:
        firebase_credentials_path: Optional path to service account JSON file.
        firebase_config_json: Optional raw JSON string of service account.

    Returns:
        True if Firebase is ready, False if no credentials were configured.
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.info("Firebase already initialized")
        return True

    cred = None

    # 1. Raw JSON string (container / production)
    if firebase_config_json:
        logger.info("Initializing Firebase with JSON string from environment")
        cred = credentials.Certificate(json.loads(firebase_config_json))

    # 2. File path (local dev)
    elif firebase_credentials_path and os.path.exists(firebase_credentials_path):
        logger.info("Initializing Firebase with JSON file", path=firebase_credentials_path)
        cred = credentials.Certificate(firebase_credentials_path)

    if cred is None:
        logger.info("Firebase credentials not configured, push delivery disabled")
        return False

    try:
        _firebase_app = firebase_admin.initialize_app(cred)
    except Exception as e:
        logger.error("Failed to initialize Firebase", error=str(e))
        raise
    return True


def is_firebase_initialized() -> bool:
    """Return True once initialize_firebase() has succeeded."""
    return _firebase_app is not None
