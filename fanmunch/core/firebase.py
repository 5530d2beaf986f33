# file: fanmunch/core/firebase.py

import os
import json
import base64
import logging
from dataclasses import dataclass
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from fanmunch.core.config import Settings

logger = logging.getLogger("core.firebase")


@dataclass
class FirebaseClients:
    app: Any
    db: Any

    @property
    def project(self) -> Optional[str]:
        return getattr(self.db, "project", None)


def _parse_service_account(raw: str) -> Optional[dict]:
    """FIREBASE_SERVICE_ACCOUNT may be plain JSON or base64-encoded JSON."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        pass
    try:
        decoded = base64.b64decode(raw).decode("utf-8")
        return json.loads(decoded)
    except (ValueError, UnicodeDecodeError):
        logger.warning("FIREBASE_SERVICE_ACCOUNT is neither JSON nor base64 JSON")
        return None


def build_credentials(settings: Settings):
    """
    Pick a credential source, in order:
      1) FIREBASE_SERVICE_ACCOUNT (JSON or base64 JSON)
      2) FIREBASE_PROJECT_ID + FIREBASE_CLIENT_EMAIL + FIREBASE_PRIVATE_KEY
      3) GOOGLE_APPLICATION_CREDENTIALS (file path or raw JSON string)
      4) Application Default Credentials
    Returns (credential, project_id, source_name).
    """
    project_id = settings.firebase_project_id

    logger.info(
        "[FCM_INIT] Detected vars: adc=%s service_account=%s project_id=%s client_email=%s private_key=%s",
        bool(settings.google_application_credentials),
        bool(settings.firebase_service_account),
        bool(project_id),
        bool(settings.firebase_client_email),
        bool(settings.firebase_private_key),
    )

    svc_account = _parse_service_account(settings.firebase_service_account or "")
    if svc_account:
        return (
            credentials.Certificate(svc_account),
            svc_account.get("project_id") or project_id,
            "service_account",
        )

    if settings.firebase_client_email and settings.firebase_private_key and project_id:
        cert = {
            "type": "service_account",
            "project_id": project_id,
            "client_email": settings.firebase_client_email,
            "private_key": settings.firebase_private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        return credentials.Certificate(cert), project_id, "env_vars"

    source = settings.google_application_credentials
    if source:
        # Case 1: it's a file path
        if os.path.exists(source):
            logger.info("Loading Firebase credentials from file: %s", source)
            return credentials.Certificate(source), project_id, "file"
        # Case 2: it's a raw JSON string
        try:
            cred_dict = json.loads(source)
        except ValueError:
            logger.warning("GOOGLE_APPLICATION_CREDENTIALS is not a file or JSON, using ADC")
        else:
            logger.info("Loading Firebase credentials from raw JSON string")
            return (
                credentials.Certificate(cred_dict),
                cred_dict.get("project_id") or project_id,
                "raw_json",
            )

    logger.warning(
        "Initializing Firebase Admin with ADC fallback. Set FIREBASE_SERVICE_ACCOUNT, "
        "FIREBASE_PROJECT_ID/FIREBASE_CLIENT_EMAIL/FIREBASE_PRIVATE_KEY or "
        "GOOGLE_APPLICATION_CREDENTIALS to avoid env detection issues."
    )
    return credentials.ApplicationDefault(), project_id, "adc"


def init_firebase(settings: Settings) -> FirebaseClients:
    """Initialize the Firebase Admin app and Firestore client once per process."""
    try:
        app = firebase_admin.get_app()
        logger.info("Reusing initialized Firebase app: %s", app.project_id)
    except ValueError:
        cred, project_id, source = build_credentials(settings)
        options = {"projectId": project_id} if project_id else None
        app = firebase_admin.initialize_app(cred, options)
        logger.info("🔥 Firebase initialized (%s) with project: %s", source, app.project_id)

    db = firestore.client(app)
    logger.info("🔥 Firestore client project: %s", db.project)
    return FirebaseClients(app=app, db=db)


__all__ = ["FirebaseClients", "init_firebase", "build_credentials"]
