import logging

import firebase_admin
from firebase_admin import auth, credentials

from fxjournal import config

logger = logging.getLogger(__name__)


def init_firebase_app():
    """Initialize the default Firebase Admin app once, using application default credentials"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"projectId": config.FIREBASE_PROJECT_ID} if config.FIREBASE_PROJECT_ID else None
    app = firebase_admin.initialize_app(credentials.ApplicationDefault(), options)
    logger.info("Firebase Admin initialized for authentication")
    return app


def verify_id_token(id_token: str) -> dict:
    """Decoded token claims; raises when the token is invalid or expired"""
    init_firebase_app()
    return auth.verify_id_token(id_token)
