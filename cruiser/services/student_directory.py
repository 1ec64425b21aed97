"""Student records in the ``users`` collection (role = student).

Deleting students never touches route stops that reference them; use
``assignment.find_orphaned_stops`` to find what is left behind.
"""
import logging

from cruiser.services.errors import NotFoundError, ValidationError, store_errors
from cruiser.services.models import (
    PHONE_RE, ROLL_NUMBER_RE, STUDENT_ROLE, Student, generate_password, normalize_roll_number,
)
from cruiser.services.route_store import RouteStore

logger = logging.getLogger(__name__)

USERS = 'users'
BATCH_LIMIT = 450


def validate_roll_number(roll_number):
    if not roll_number:
        raise ValidationError('Roll number is required.', field='roll_number')
    if not ROLL_NUMBER_RE.match(roll_number):
        raise ValidationError('Roll number must be exactly 10 characters long.', field='roll_number')


def validate_phone(phone_number):
    if phone_number and not PHONE_RE.match(phone_number):
        raise ValidationError('Phone number must be exactly 10 digits.', field='phone_number')


class StudentDirectory:

    def __init__(self, db):
        self.db = db

    def _students_query(self):
        return self.db.collection(USERS).where('role', '==', STUDENT_ROLE)

    def list_students(self):
        with store_errors('list students'):
            return [Student.from_dict(doc.to_dict(), doc.id) for doc in self._students_query().stream()]

    def find_by_roll_number(self, roll_number):
        wanted = normalize_roll_number(roll_number)
        for student in self.list_students():
            if student.roll_number == wanted:
                return student
        return None

    def create_student(self, full_name, roll_number, email, phone_number=''):
        full_name = (full_name or '').strip()
        email = (email or '').strip()
        phone_number = (phone_number or '').strip()
        roll_number = (roll_number or '').strip()

        if not full_name or not roll_number or not email:
            raise ValidationError('Please fill out all required fields.')
        validate_roll_number(roll_number)
        validate_phone(phone_number)

        roll_number = normalize_roll_number(roll_number)
        if self.find_by_roll_number(roll_number):
            raise ValidationError(f'A student with roll number {roll_number} already exists.', field='roll_number')

        password = generate_password()
        student = Student(
            id=None,
            full_name=full_name,
            roll_number=roll_number,
            email=email,
            phone_number=phone_number,
            password=password,
        )
        with store_errors(f'create student {roll_number}'):
            ref = self.db.collection(USERS).document()
            ref.set(student.to_dict())
        student.id = ref.id
        logger.info("Created student %s (%s)", student.roll_number, student.id)
        return student

    def update_profile(self, user_id, full_name, email, phone_number):
        if not user_id:
            raise ValidationError('User ID is required.')
        validate_phone(phone_number)
        ref = self.db.collection(USERS).document(user_id)
        with store_errors(f'update profile of user {user_id}'):
            if not ref.get().exists:
                raise NotFoundError('User not found.')
            ref.update({
                'full_name': full_name,
                'email': email,
                'phone_number': phone_number,
            })

    def change_password(self, user_id, current_password, new_password):
        if not user_id:
            raise ValidationError('User ID is required.')
        if not new_password:
            raise ValidationError('New password is required.', field='new_password')
        ref = self.db.collection(USERS).document(user_id)
        with store_errors(f'change password of user {user_id}'):
            snap = ref.get()
            if not snap.exists:
                raise NotFoundError('User not found.')
            if snap.to_dict().get('password') != current_password:
                raise ValidationError('Incorrect current password.', field='current_password')
            ref.update({'password': new_password})

    def delete_student(self, student_id):
        if not student_id:
            raise ValidationError('Student ID is required.')
        with store_errors(f'delete student {student_id}'):
            self.db.collection(USERS).document(student_id).delete()
        logger.info("Deleted student %s", student_id)

    def _delete_in_batches(self, query):
        batch = self.db.batch()
        batch_count = 0
        total = 0
        for doc in query.stream():
            batch.delete(doc.reference)
            batch_count += 1
            total += 1
            if batch_count >= BATCH_LIMIT:
                batch.commit()
                batch = self.db.batch()
                batch_count = 0

        if batch_count > 0:
            batch.commit()
        return total

    def delete_all_students(self):
        """Delete every student record. Returns how many were removed."""
        with store_errors('delete students'):
            total = self._delete_in_batches(self._students_query())
        logger.info("Deleted %d students", total)
        return total

    def delete_all_users(self):
        """Delete every user record, admins included. Returns how many were removed."""
        with store_errors('delete users'):
            total = self._delete_in_batches(self.db.collection(USERS))
        logger.info("Deleted %d users", total)
        return total

    def find_student_route_and_stop(self, roll_number, routes=None):
        """Linear scan of every route's stops for this roll number.

        Returns ``(route, stop)`` or ``(None, None)``.
        """
        wanted = normalize_roll_number(roll_number)
        if not wanted:
            return None, None
        if routes is None:
            routes = RouteStore(self.db).list_routes()
        for route in routes:
            for stop in route.stops:
                if stop.roll_number == wanted:
                    return route, stop
        return None, None
