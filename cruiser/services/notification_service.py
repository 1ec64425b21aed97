import logging

from firebase_admin import firestore

from cruiser.services.errors import ValidationError

logger = logging.getLogger(__name__)

NOTIFICATIONS = 'notifications'


def send_notification(db, message):
    message = (message or '').strip()
    if not message:
        raise ValidationError('Notification message cannot be empty.', field='message')
    ref = db.collection(NOTIFICATIONS).document()
    ref.set({
        'message': message,
        'timestamp': firestore.SERVER_TIMESTAMP,
    })
    logger.info("Broadcast notification %s", ref.id)
    return ref.id


def list_notifications(db):
    query = db.collection(NOTIFICATIONS).order_by('timestamp', direction=firestore.Query.DESCENDING)
    notifications = []
    for doc in query.stream():
        data = doc.to_dict()
        timestamp = data.get('timestamp')
        notifications.append({
            'id': doc.id,
            'message': data.get('message', ''),
            'timestamp': timestamp.isoformat() if timestamp else None,
        })
    return notifications
