import logging

from flask import Blueprint, jsonify, request

from cruiser.routes.responses import error_response, request_data
from cruiser.services import mail_service
from cruiser.services.errors import CruiserError, MailNotConfiguredError
from cruiser.services.firebase_service import get_db
from cruiser.services.student_directory import StudentDirectory

logger = logging.getLogger(__name__)

students_bp = Blueprint('students', __name__)


def cruiser_error_response(e):
    return error_response(e.message, e.status_code, getattr(e, 'field', None))


@students_bp.route('/api/students', methods=['GET'])
def list_students():
    directory = StudentDirectory(get_db())
    students = [s.to_public_dict() for s in directory.list_students()]
    return jsonify({'status': 'success', 'students': students})


@students_bp.route('/api/students', methods=['POST'])
def create_student():
    data = request_data(request)
    directory = StudentDirectory(get_db())
    try:
        student = directory.create_student(
            data.get('full_name'),
            data.get('roll_number'),
            data.get('email'),
            data.get('phone_number', ''),
        )
    except CruiserError as e:
        return cruiser_error_response(e)

    # The account exists either way; a failed welcome mail is only reported.
    email_sent = False
    try:
        email_sent = mail_service.send_mail(
            student.email,
            'Welcome to Campus Cruiser',
            mail_service.welcome_email_body(student, student.password),
        )
    except MailNotConfiguredError as e:
        logger.warning("Welcome email for %s skipped: %s", student.roll_number, e.message)
    if not email_sent:
        logger.warning("Could not send welcome email to %s", student.email)

    return jsonify({
        'status': 'success',
        'id': student.id,
        'roll_number': student.roll_number,
        'password': student.password,
        'email_sent': email_sent,
    })


@students_bp.route('/api/students/<student_id>', methods=['POST'])
def update_student(student_id):
    data = request_data(request)
    try:
        StudentDirectory(get_db()).update_profile(
            student_id,
            data.get('full_name', ''),
            data.get('email', ''),
            data.get('phone_number', ''),
        )
    except CruiserError as e:
        return cruiser_error_response(e)
    return jsonify({'status': 'success'})


@students_bp.route('/api/students/<student_id>/password', methods=['POST'])
def change_password(student_id):
    data = request_data(request)
    try:
        StudentDirectory(get_db()).change_password(
            student_id, data.get('current_password'), data.get('new_password'))
    except CruiserError as e:
        return cruiser_error_response(e)
    return jsonify({'status': 'success'})


@students_bp.route('/api/students/<student_id>/delete', methods=['POST'])
def delete_student(student_id):
    # Stops that reference this student are left in place (see /api/reconcile/orphans).
    try:
        StudentDirectory(get_db()).delete_student(student_id)
    except CruiserError as e:
        return cruiser_error_response(e)
    return jsonify({'status': 'success'})


@students_bp.route('/api/students/delete_all', methods=['POST'])
def delete_all_students():
    deleted = StudentDirectory(get_db()).delete_all_students()
    if not deleted:
        return jsonify({'status': 'success', 'message': 'No students to delete.', 'deleted': 0})
    return jsonify({'status': 'success', 'deleted': deleted})


@students_bp.route('/api/students/<roll_number>/assignment', methods=['GET'])
def student_assignment(roll_number):
    route, stop = StudentDirectory(get_db()).find_student_route_and_stop(roll_number)
    if route is None:
        return error_response('No stop is assigned to this roll number.', 404)
    return jsonify({
        'status': 'success',
        'route': route.to_json(),
        'stop': stop.to_dict(),
    })


@students_bp.route('/api/users/delete_all', methods=['POST'])
def delete_all_users():
    deleted = StudentDirectory(get_db()).delete_all_users()
    if not deleted:
        return jsonify({'status': 'success', 'message': 'No users to delete.', 'deleted': 0})
    return jsonify({'status': 'success', 'deleted': deleted})
