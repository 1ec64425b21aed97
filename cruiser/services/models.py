"""Document shapes for the ``users`` and ``routes`` collections.

Firestore documents are plain dicts; these dataclasses are the typed view the
services work with. ``to_dict`` produces exactly what gets written.
"""
import re
import secrets
import string
from dataclasses import dataclass, field, replace
from typing import List, Optional

CAPACITY_LEVELS = ('Low', 'Medium', 'Full')
STUDENT_ROLE = 'student'

ROLL_NUMBER_RE = re.compile(r'^[A-Za-z0-9]{10}$')
PHONE_RE = re.compile(r'^\d{10}$')
TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def normalize_roll_number(roll_number):
    return str(roll_number or '').strip().upper()


def slugify(value):
    slug = re.sub(r'[^a-z0-9]+', '-', str(value or '').lower())
    return slug.strip('-')


def make_stop_id(route_name, student_name):
    # Practically unique only; nothing checks for collisions.
    alphabet = string.ascii_lowercase + string.digits
    suffix = ''.join(secrets.choice(alphabet) for _ in range(5))
    return f"{slugify(route_name)}-{slugify(student_name)}-{suffix}"


def generate_password(length=8):
    alphabet = string.ascii_lowercase + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self):
        return {'lat': self.lat, 'lng': self.lng}

    @classmethod
    def from_dict(cls, data):
        return cls(lat=float(data['lat']), lng=float(data['lng']))


@dataclass
class Stop:
    id: str
    student_name: str
    roll_number: str
    location: str
    time: str
    position: Coordinates
    landmark: Optional[str] = None
    eta: Optional[str] = None

    def to_dict(self):
        data = {
            'id': self.id,
            'student_name': self.student_name,
            'roll_number': self.roll_number,
            'location': self.location,
            'landmark': self.landmark or '',
            'time': self.time,
            'position': self.position.to_dict(),
        }
        if self.eta:
            data['eta'] = self.eta
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            student_name=data.get('student_name', ''),
            roll_number=normalize_roll_number(data.get('roll_number')),
            location=data.get('location', ''),
            time=data.get('time', ''),
            position=Coordinates.from_dict(data['position']),
            landmark=data.get('landmark') or None,
            eta=data.get('eta') or None,
        )

    def with_changes(self, **changes):
        return replace(self, **changes)


@dataclass
class Route:
    id: Optional[str]
    name: str
    bus_number: str
    driver_name: str
    driver_mobile: str
    stops: List[Stop] = field(default_factory=list)
    capacity: Optional[str] = None

    def to_dict(self):
        data = {
            'name': self.name,
            'bus_number': self.bus_number,
            'driver_name': self.driver_name,
            'driver_mobile': self.driver_mobile,
            'stops': [s.to_dict() for s in self.stops],
        }
        if self.capacity:
            data['capacity'] = self.capacity
        return data

    @classmethod
    def from_dict(cls, data, route_id=None):
        return cls(
            id=route_id or data.get('id'),
            name=data.get('name', ''),
            bus_number=data.get('bus_number', ''),
            driver_name=data.get('driver_name', ''),
            driver_mobile=data.get('driver_mobile', ''),
            stops=[Stop.from_dict(s) for s in data.get('stops', []) if isinstance(s, dict)],
            capacity=data.get('capacity') or None,
        )

    def find_stop(self, stop_id):
        for stop in self.stops:
            if stop.id == stop_id:
                return stop
        return None

    def to_json(self):
        data = self.to_dict()
        data['id'] = self.id
        return data


@dataclass
class Student:
    id: Optional[str]
    full_name: str
    roll_number: str
    email: str = ''
    phone_number: str = ''
    password: str = ''
    role: str = STUDENT_ROLE

    def to_dict(self):
        return {
            'full_name': self.full_name,
            'roll_number': self.roll_number,
            'email': self.email,
            'phone_number': self.phone_number,
            'password': self.password,
            'role': self.role,
        }

    @classmethod
    def from_dict(cls, data, student_id=None):
        return cls(
            id=student_id,
            full_name=data.get('full_name', ''),
            roll_number=normalize_roll_number(data.get('roll_number')),
            email=data.get('email', ''),
            phone_number=data.get('phone_number', ''),
            password=data.get('password', ''),
            role=data.get('role', STUDENT_ROLE),
        )

    def to_public_dict(self):
        # Never hand the stored password back out.
        data = self.to_dict()
        data.pop('password')
        data['id'] = self.id
        return data
