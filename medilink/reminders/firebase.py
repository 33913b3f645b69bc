import json
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from .config import settings

logger = logging.getLogger(__name__)


def _resolve_credentials_source() -> Optional[str]:
    return (
        settings.FCM_CREDENTIALS_JSON
        or os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON")
        or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    )


def ensure_firebase_app() -> bool:
    """Initialise the default Firebase app once.

    Credential sources, in order: ``REMINDER_FCM_CREDENTIALS_JSON`` (inline JSON
    or a file path), ``GOOGLE_APPLICATION_CREDENTIALS_JSON``,
    ``GOOGLE_APPLICATION_CREDENTIALS``. Without any of them the app falls back
    to the project id alone, then to application default credentials.

    Returns whether a default app is available afterwards.
    """
    if firebase_admin._apps:
        return True

    proj = settings.FCM_PROJECT_ID
    options = {"projectId": proj} if proj else None
    creds_json = _resolve_credentials_source()
    logger.info("Initializing Firebase | project_id=%s credentials_set=%s", proj, bool(creds_json))

    try:
        if creds_json and creds_json.strip().startswith("{"):
            cred = credentials.Certificate(json.loads(creds_json))
            firebase_admin.initialize_app(cred, options=options)
            logger.info("Firebase app initialized (inline JSON)")
        elif creds_json and os.path.exists(creds_json):
            cred = credentials.Certificate(creds_json)
            firebase_admin.initialize_app(cred, options=options)
            logger.info("Firebase app initialized (file: %s)", creds_json)
        else:
            if creds_json:
                logger.warning("Firebase credentials path %s does not exist, using defaults", creds_json)
            firebase_admin.initialize_app(options=options)
            logger.info("Firebase app initialized (application defaults)")
    except (ValueError, IOError) as e:
        logger.error("Failed to initialize Firebase: %r", e)
        return False

    return bool(firebase_admin._apps)
