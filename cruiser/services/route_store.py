"""Persistence for route documents and their embedded stop arrays.

Firestore failures surface as ``StoreError``; a write to a route that no
longer exists surfaces as ``NotFoundError``.
"""
import logging

from firebase_admin import firestore
from google.api_core.exceptions import NotFound

from cruiser.services.errors import NotFoundError, ValidationError, store_errors
from cruiser.services.models import CAPACITY_LEVELS, Route

logger = logging.getLogger(__name__)

ROUTES = 'routes'


class RouteStore:

    def __init__(self, db):
        self.db = db

    def _ref(self, route_id):
        return self.db.collection(ROUTES).document(route_id)

    def _update(self, route_id, action, updates):
        with store_errors(f'{action} route {route_id}'):
            try:
                self._ref(route_id).update(updates)
            except NotFound as e:
                raise NotFoundError('Route not found.') from e

    def create_route(self, route):
        # Duplicate names / bus numbers are allowed.
        with store_errors(f'create route {route.name}'):
            route_ref = self.db.collection(ROUTES).document()
            route_ref.set(route.to_dict())
        route.id = route_ref.id
        logger.info("Created route %s (%s) with %d stops", route.id, route.name, len(route.stops))
        return route

    def list_routes(self):
        routes = []
        with store_errors('list routes'):
            for doc in self.db.collection(ROUTES).stream():
                routes.append(Route.from_dict(doc.to_dict(), doc.id))
        return routes

    def get_route(self, route_id):
        with store_errors(f'read route {route_id}'):
            snap = self._ref(route_id).get()
        if not snap.exists:
            raise NotFoundError('Route not found.')
        return Route.from_dict(snap.to_dict(), snap.id)

    def find_route(self, route_id):
        try:
            return self.get_route(route_id)
        except NotFoundError:
            return None

    def append_stop(self, route_id, stop):
        """Atomically append one stop; concurrent appends never lose each other."""
        self._update(route_id, 'add a stop to', {'stops': firestore.ArrayUnion([stop.to_dict()])})

    def update_route_stops(self, route_id, stops):
        """Overwrite the whole stop array. Last writer wins."""
        self._update(route_id, 'update stops of', {'stops': [s.to_dict() for s in stops]})

    def delete_route(self, route_id):
        # Deleting a missing document is a no-op in Firestore.
        with store_errors(f'delete route {route_id}'):
            self._ref(route_id).delete()
        logger.info("Deleted route %s", route_id)

    def update_capacity(self, route_id, capacity):
        if capacity not in CAPACITY_LEVELS:
            raise ValidationError(
                f"Capacity must be one of: {', '.join(CAPACITY_LEVELS)}.", field='capacity')
        self._update(route_id, 'update capacity of', {'capacity': capacity})
