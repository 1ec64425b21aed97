import json
import logging

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

db = None


def init_firebase(app):
    global db
    injected = app.config.get('FIRESTORE_CLIENT')
    if injected is not None:
        db = injected
        return

    if not firebase_admin._apps:
        creds_config = app.config['FIREBASE_CREDENTIALS']

        if isinstance(creds_config, dict):
            cred = credentials.Certificate(creds_config)
        elif creds_config.startswith('{'):
            # It's a JSON string from env var
            cred = credentials.Certificate(json.loads(creds_config))
        else:
            # It's a file path
            cred = credentials.Certificate(creds_config)

        firebase_admin.initialize_app(cred)
        logger.info("Firebase initialised for project %s", cred.project_id)
    db = firestore.client()


def get_db():
    return db
