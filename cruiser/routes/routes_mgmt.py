from flask import Blueprint, jsonify, request

from cruiser.routes.responses import error_response, get_reconciler, request_data, result_response
from cruiser.services.assignment import StopInput
from cruiser.services.errors import NotFoundError

routes_bp = Blueprint('routes', __name__)


@routes_bp.route('/api/routes', methods=['GET'])
def list_routes():
    reconciler = get_reconciler()
    routes = [r.to_json() for r in reconciler.routes.list_routes()]
    return jsonify({'status': 'success', 'routes': routes})


@routes_bp.route('/api/routes/<route_id>', methods=['GET'])
def route_details(route_id):
    reconciler = get_reconciler()
    try:
        route = reconciler.routes.get_route(route_id)
    except NotFoundError as e:
        return error_response(e.message, 404)
    return jsonify({'status': 'success', 'route': route.to_json()})


@routes_bp.route('/api/routes', methods=['POST'])
def create_route():
    data = request.get_json(silent=True) or {}
    stops = data.get('stops') or []
    if not isinstance(stops, list):
        return error_response('Stops must be a list.', 400, 'stops')

    result = get_reconciler().create_route(data, [StopInput.from_dict(s) for s in stops])
    if not result.success:
        return result_response(result)
    return result_response(result, id=result.data.id, route=result.data.to_json())


@routes_bp.route('/api/routes/<route_id>/delete', methods=['POST'])
def delete_route(route_id):
    return result_response(get_reconciler().delete_route(route_id))


@routes_bp.route('/api/routes/<route_id>/capacity', methods=['POST'])
def update_capacity(route_id):
    data = request_data(request)
    return result_response(get_reconciler().update_capacity(route_id, data.get('capacity')))


@routes_bp.route('/api/routes/<route_id>/stops', methods=['POST'])
def add_stop(route_id):
    data = request_data(request)
    result = get_reconciler().add_stop(route_id, StopInput.from_dict(data), route_name=data.get('route_name'))
    if not result.success:
        return result_response(result)
    return result_response(result, stop=result.data.to_dict())


@routes_bp.route('/api/routes/<route_id>/stops/<stop_id>', methods=['POST'])
def edit_stop(route_id, stop_id):
    data = request_data(request)
    result = get_reconciler().edit_stop(
        route_id, stop_id,
        location=data.get('location'),
        time=data.get('time'),
        landmark=data.get('landmark'),
    )
    if not result.success:
        return result_response(result)
    return result_response(result, stop=result.data.to_dict())


@routes_bp.route('/api/routes/<route_id>/stops/<stop_id>/delete', methods=['POST'])
def delete_stop(route_id, stop_id):
    return result_response(get_reconciler().delete_stop(route_id, stop_id))
