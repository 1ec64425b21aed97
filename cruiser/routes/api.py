from flask import Blueprint, jsonify, request

from cruiser.routes.responses import error_response, get_reconciler, request_data
from cruiser.services.errors import ValidationError
from cruiser.services.firebase_service import get_db
from cruiser.services.notification_service import list_notifications, send_notification

api_bp = Blueprint('api', __name__)


@api_bp.route('/api/notifications', methods=['GET'])
def api_list_notifications():
    return jsonify({'status': 'success', 'notifications': list_notifications(get_db())})


@api_bp.route('/api/notifications', methods=['POST'])
def api_send_notification():
    data = request_data(request)
    try:
        notification_id = send_notification(get_db(), data.get('message'))
    except ValidationError as e:
        return error_response(e.message, 400, e.field)
    return jsonify({'status': 'success', 'id': notification_id})


@api_bp.route('/api/reconcile/orphans', methods=['GET'])
def api_orphaned_stops():
    orphans = [
        {'route_id': route.id, 'route_name': route.name, 'stop': stop.to_dict()}
        for route, stop in get_reconciler().find_orphaned_stops()
    ]
    return jsonify({'status': 'success', 'orphans': orphans})


@api_bp.route('/api/reconcile/sync_names', methods=['POST'])
def api_sync_student_names():
    changed = get_reconciler().sync_student_names()
    return jsonify({'status': 'success', 'updated': changed})
