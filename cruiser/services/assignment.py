"""Keeps route stops consistent with the student directory.

Every route and stop operation returns an ``OperationResult`` instead of
raising, store outages included, so callers only have to render
``result.message``. Nothing is written unless the whole operation has
validated and every address has resolved.

Edit and delete rewrite a route's whole stop array (read, modify, write).
Two admins editing the same route at once can lose one of the changes; only
``add_stop`` is safe against that because it uses an atomic array append.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional

from cruiser.services.errors import CruiserError, NotFoundError, ValidationError
from cruiser.services.models import (
    CAPACITY_LEVELS, PHONE_RE, TIME_RE, Route, Stop, make_stop_id, normalize_roll_number,
)

logger = logging.getLogger(__name__)

MAX_GEOCODE_WORKERS = 4


@dataclass
class OperationResult:
    success: bool
    message: Optional[str] = None
    data: Any = None
    error: Optional[CruiserError] = None

    @classmethod
    def ok(cls, data=None, message=None):
        return cls(True, message=message, data=data)

    @classmethod
    def fail(cls, error):
        return cls(False, message=error.message, error=error)

    @property
    def status_code(self):
        if self.success:
            return 200
        return self.error.status_code if self.error else 500


@dataclass
class StopInput:
    roll_number: str
    location: str
    time: str
    student_name: str = ''
    landmark: str = ''

    @classmethod
    def from_dict(cls, data):
        return cls(
            roll_number=str(data.get('roll_number') or '').strip(),
            location=str(data.get('location') or '').strip(),
            time=str(data.get('time') or '').strip(),
            student_name=str(data.get('student_name') or '').strip(),
            landmark=str(data.get('landmark') or '').strip(),
        )


def validate_stop_input(stop_input):
    if not stop_input.roll_number:
        raise ValidationError('Please select a student.', field='roll_number')
    if not stop_input.location:
        raise ValidationError('Location is missing.', field='location')
    validate_time(stop_input.time)


def validate_time(time):
    if not time:
        raise ValidationError('Time is missing.', field='time')
    if not TIME_RE.match(time):
        raise ValidationError('Time must be in HH:MM format.', field='time')


def validate_route_attributes(attributes):
    for field, label in (('name', 'Route name'), ('bus_number', 'Bus number'), ('driver_name', "Driver's name")):
        if not str(attributes.get(field) or '').strip():
            raise ValidationError(f'{label} is required.', field=field)
    if not PHONE_RE.match(str(attributes.get('driver_mobile') or '').strip()):
        raise ValidationError('Mobile number must be 10 digits.', field='driver_mobile')
    capacity = attributes.get('capacity')
    if capacity and capacity not in CAPACITY_LEVELS:
        raise ValidationError(f"Capacity must be one of: {', '.join(CAPACITY_LEVELS)}.", field='capacity')


def remove_stop(stops, stop_id):
    return [s for s in stops if s.id != stop_id]


def replace_stop(stops, stop_id, location, landmark, time, position):
    """Swap one stop's editable fields. Identity fields are left alone."""
    updated = []
    for stop in stops:
        if stop.id == stop_id:
            stop = stop.with_changes(location=location, landmark=landmark or None, time=time, position=position)
        updated.append(stop)
    return updated


class AssignmentReconciler:

    def __init__(self, route_store, directory, geocoder):
        self.routes = route_store
        self.directory = directory
        self.geocoder = geocoder

    def _student_names(self):
        return {s.roll_number: s.full_name for s in self.directory.list_students()}

    def _resolve_student(self, stop_input, students):
        roll_number = normalize_roll_number(stop_input.roll_number)
        if roll_number not in students:
            raise ValidationError(f'Student {roll_number} was not found.', field='roll_number')
        return roll_number, students[roll_number] or stop_input.student_name

    def _resolve_all(self, addresses):
        if len(addresses) <= 1:
            return [self.geocoder.resolve(a) for a in addresses]
        workers = min(MAX_GEOCODE_WORKERS, len(addresses))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # list() re-raises the first failure after all lookups finish
            return list(pool.map(self.geocoder.resolve, addresses))

    def _build_stop(self, route_name, stop_input, students, position):
        roll_number, student_name = self._resolve_student(stop_input, students)
        return Stop(
            id=make_stop_id(route_name, student_name),
            student_name=student_name,
            roll_number=roll_number,
            location=stop_input.location,
            landmark=stop_input.landmark or None,
            time=stop_input.time,
            position=position,
        )

    def create_route(self, attributes, stop_inputs=()):
        """Validate, geocode, then write the route once with all its stops."""
        try:
            validate_route_attributes(attributes)
            stop_inputs = list(stop_inputs)
            for stop_input in stop_inputs:
                validate_stop_input(stop_input)

            students = self._student_names() if stop_inputs else {}
            for stop_input in stop_inputs:
                self._resolve_student(stop_input, students)

            positions = self._resolve_all([s.location for s in stop_inputs])

            name = str(attributes['name']).strip()
            stops = [
                self._build_stop(name, stop_input, students, position)
                for stop_input, position in zip(stop_inputs, positions)
            ]
            route = Route(
                id=None,
                name=name,
                bus_number=str(attributes['bus_number']).strip(),
                driver_name=str(attributes['driver_name']).strip(),
                driver_mobile=str(attributes['driver_mobile']).strip(),
                stops=stops,
                capacity=attributes.get('capacity') or None,
            )
            route = self.routes.create_route(route)
        except CruiserError as e:
            logger.error("Route creation failed: %s", e.message)
            return OperationResult.fail(e)
        return OperationResult.ok(route, f'Successfully created route: {route.name}.')

    def add_stop(self, route_id, stop_input, route_name=None):
        try:
            if not route_id:
                raise ValidationError('Please select a route by its bus number.', field='route_id')
            validate_stop_input(stop_input)
            students = self._student_names()
            self._resolve_student(stop_input, students)
            position = self.geocoder.resolve(stop_input.location)
            stop = self._build_stop(route_name or route_id, stop_input, students, position)
            self.routes.append_stop(route_id, stop)
        except CruiserError as e:
            logger.error("Adding stop to route %s failed: %s", route_id, e.message)
            return OperationResult.fail(e)
        return OperationResult.ok(stop, f'Successfully added stop for {stop.student_name}.')

    def edit_stop(self, route_id, stop_id, location, time, landmark=''):
        location = (location or '').strip()
        time = (time or '').strip()
        try:
            if not route_id or not stop_id:
                raise ValidationError("Student's route or stop information is missing.")
            if not location:
                raise ValidationError('Location is missing.', field='location')
            validate_time(time)

            route = self.routes.get_route(route_id)
            if route.find_stop(stop_id) is None:
                raise NotFoundError('Stop not found in the route.')

            position = self.geocoder.resolve(location)
            stops = replace_stop(route.stops, stop_id, location, (landmark or '').strip(), time, position)
            self.routes.update_route_stops(route_id, stops)
        except CruiserError as e:
            logger.error("Editing stop %s on route %s failed: %s", stop_id, route_id, e.message)
            return OperationResult.fail(e)
        return OperationResult.ok(next(s for s in stops if s.id == stop_id), 'Stop updated.')

    def delete_stop(self, route_id, stop_id):
        try:
            if not route_id or not stop_id:
                raise ValidationError('Route ID and Stop ID are required.')
            route = self.routes.find_route(route_id)
            if route is None:
                logger.warning("Route %s not found while deleting stop %s", route_id, stop_id)
                return OperationResult.ok(message='Route not found, nothing to delete.')
            if route.find_stop(stop_id) is None:
                logger.warning("Stop %s not found in route %s. It might have been already deleted.", stop_id, route_id)
                return OperationResult.ok(message='Stop not found, likely already deleted.')

            self.routes.update_route_stops(route_id, remove_stop(route.stops, stop_id))
        except CruiserError as e:
            logger.error("Deleting stop %s from route %s failed: %s", stop_id, route_id, e.message)
            return OperationResult.fail(e)
        return OperationResult.ok(message='Stop deleted.')

    def delete_route(self, route_id):
        try:
            if not route_id:
                raise ValidationError('Route ID is required.')
            self.routes.delete_route(route_id)
        except CruiserError as e:
            return OperationResult.fail(e)
        return OperationResult.ok(message='Route deleted.')

    def update_capacity(self, route_id, capacity):
        try:
            self.routes.update_capacity(route_id, capacity)
        except CruiserError as e:
            logger.error("Updating capacity of route %s failed: %s", route_id, e.message)
            return OperationResult.fail(e)
        return OperationResult.ok(message=f'Capacity set to {capacity}.')

    def find_orphaned_stops(self):
        """Stops whose roll number no longer matches any student."""
        known = set(self._student_names())
        orphans = []
        for route in self.routes.list_routes():
            for stop in route.stops:
                if stop.roll_number not in known:
                    orphans.append((route, stop))
        return orphans

    def sync_student_names(self):
        """Copy current student names into stops that drifted. Returns stops changed."""
        names = self._student_names()
        changed = 0
        for route in self.routes.list_routes():
            stale = {s.id for s in route.stops if s.roll_number in names and s.student_name != names[s.roll_number]}
            if not stale:
                continue
            stops = [
                s.with_changes(student_name=names[s.roll_number]) if s.id in stale else s
                for s in route.stops
            ]
            self.routes.update_route_stops(route.id, stops)
            changed += len(stale)
            logger.info("Re-synced %d student names on route %s", len(stale), route.id)
        return changed
