from flask import jsonify

from cruiser.services.assignment import AssignmentReconciler
from cruiser.services.firebase_service import get_db
from cruiser.services.geocoding_service import get_geocoder
from cruiser.services.route_store import RouteStore
from cruiser.services.student_directory import StudentDirectory


def get_reconciler():
    db = get_db()
    return AssignmentReconciler(RouteStore(db), StudentDirectory(db), get_geocoder())


def request_data(request):
    if request.is_json:
        return request.get_json() or {}
    return request.form.to_dict()


def error_response(message, status_code, field=None):
    body = {'status': 'error', 'message': message}
    if field:
        body['field'] = field
    return jsonify(body), status_code


def result_response(result, **extra):
    if not result.success:
        return error_response(result.message, result.status_code, getattr(result.error, 'field', None))
    body = {'status': 'success'}
    if result.message:
        body['message'] = result.message
    body.update(extra)
    return jsonify(body), 200
