import unittest
from unittest import mock

from google.api_core.exceptions import ServiceUnavailable

from config import Config
from cruiser import create_app
from tests.fake_firestore import FakeDocument, FakeFirestore
from tests.fakes import FakeGeocoder, route_doc, stop_doc, student_doc


def make_app(db, geocoder):
    class TestConfig(Config):
        TESTING = True
        FIRESTORE_CLIENT = db
        GEOCODER = geocoder
        EMAIL_HOST = None

    return create_app(TestConfig)


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.db = FakeFirestore()
        self.db.put('users', 'u1', student_doc('Jane Doe', '23B81A0501'))
        self.geocoder = FakeGeocoder({'Main Gate, City': (17.40, 78.50), 'Library Road': (17.41, 78.51)})
        self.app = make_app(self.db, self.geocoder)
        self.client = self.app.test_client()


class RouteApiTest(ApiTestCase):

    def test_create_route_with_stops(self):
        resp = self.client.post('/api/routes', json={
            'name': 'Campus Express',
            'bus_number': '#1234',
            'driver_name': 'John Doe',
            'driver_mobile': '9876543210',
            'stops': [{'roll_number': '23b81a0501', 'location': 'Main Gate, City', 'time': '08:00'}],
        })
        self.assertEqual(resp.status_code, 200, resp.get_json())
        body = resp.get_json()
        self.assertEqual(body['status'], 'success')
        self.assertEqual(body['route']['stops'][0]['position'], {'lat': 17.40, 'lng': 78.50})
        self.assertIn(body['id'], self.db.docs('routes'))

        listed = self.client.get('/api/routes').get_json()
        self.assertEqual([r['id'] for r in listed['routes']], [body['id']])

    def test_create_route_geocode_failure(self):
        resp = self.client.post('/api/routes', json={
            'name': 'Campus Express',
            'bus_number': '#1234',
            'driver_name': 'John Doe',
            'driver_mobile': '9876543210',
            'stops': [{'roll_number': '23B81A0501', 'location': 'Nowhere Street', 'time': '08:00'}],
        })
        self.assertEqual(resp.status_code, 422)
        self.assertIn('No coordinates found for address: "Nowhere Street"', resp.get_json()['message'])
        self.assertEqual(self.db.docs('routes'), {})

    def test_add_stop_validation_error(self):
        self.db.put('routes', 'r1', route_doc())
        resp = self.client.post('/api/routes/r1/stops', json={
            'roll_number': '23B81A0501', 'location': '', 'time': '08:00'})
        self.assertEqual(resp.status_code, 400)
        body = resp.get_json()
        self.assertEqual(body['message'], 'Location is missing.')
        self.assertEqual(body['field'], 'location')
        self.assertEqual(self.db.docs('routes')['r1']['stops'], [])

    def test_add_edit_delete_stop(self):
        self.db.put('routes', 'r1', route_doc())
        resp = self.client.post('/api/routes/r1/stops', data={
            'roll_number': '23B81A0501', 'location': 'Main Gate, City', 'time': '08:00',
            'route_name': 'Campus Express'})
        self.assertEqual(resp.status_code, 200, resp.get_json())
        stop_id = resp.get_json()['stop']['id']

        resp = self.client.post(f'/api/routes/r1/stops/{stop_id}', json={
            'location': 'Library Road', 'time': '08:30'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['stop']['id'], stop_id)

        resp = self.client.post(f'/api/routes/r1/stops/{stop_id}/delete')
        self.assertEqual(resp.get_json()['status'], 'success')
        self.assertEqual(self.db.docs('routes')['r1']['stops'], [])

        resp = self.client.post(f'/api/routes/r1/stops/{stop_id}/delete')
        self.assertEqual(resp.status_code, 200)

    def test_edit_unknown_stop_is_404(self):
        self.db.put('routes', 'r1', route_doc(stops=[stop_doc('a')]))
        resp = self.client.post('/api/routes/r1/stops/x', json={'location': 'Library Road', 'time': '08:30'})
        self.assertEqual(resp.status_code, 404)

    def test_route_details_capacity_and_delete(self):
        self.db.put('routes', 'r1', route_doc(stops=[stop_doc('a')]))
        self.assertEqual(self.client.get('/api/routes/missing').status_code, 404)

        resp = self.client.post('/api/routes/r1/capacity', json={'capacity': 'Medium'})
        self.assertEqual(resp.status_code, 200)
        route = self.client.get('/api/routes/r1').get_json()['route']
        self.assertEqual(route['capacity'], 'Medium')

        self.assertEqual(self.client.post('/api/routes/r1/capacity', json={'capacity': 'Huge'}).status_code, 400)

        self.assertEqual(self.client.post('/api/routes/r1/delete').status_code, 200)
        self.assertEqual(self.client.post('/api/routes/r1/delete').status_code, 200)
        self.assertEqual(self.db.docs('routes'), {})


class StudentApiTest(ApiTestCase):

    def test_create_student_without_mail(self):
        resp = self.client.post('/api/students', json={
            'full_name': 'Ravi Kumar', 'roll_number': '23b81a0502', 'email': 'ravi@example.com'})
        self.assertEqual(resp.status_code, 200)
        body = resp.get_json()
        self.assertEqual(body['roll_number'], '23B81A0502')
        self.assertFalse(body['email_sent'])

        students = self.client.get('/api/students').get_json()['students']
        self.assertEqual(len(students), 2)
        self.assertTrue(all('password' not in s for s in students))

    def test_invalid_roll_number(self):
        resp = self.client.post('/api/students', json={
            'full_name': 'Ravi Kumar', 'roll_number': 'short', 'email': 'ravi@example.com'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['field'], 'roll_number')

    def test_profile_and_password(self):
        resp = self.client.post('/api/students/u1', json={
            'full_name': 'Jane Q. Doe', 'email': 'jq@example.com', 'phone_number': '9123456789'})
        self.assertEqual(resp.status_code, 200)
        resp = self.client.post('/api/students/u1/password', json={
            'current_password': 'nope', 'new_password': 'x'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.client.post('/api/students/missing', json={}).status_code, 404)

    def test_assignment_lookup_and_orphans(self):
        self.db.put('routes', 'r1', route_doc(stops=[stop_doc('a', '23B81A0501')]))

        resp = self.client.get('/api/students/23b81a0501/assignment')
        self.assertEqual(resp.get_json()['stop']['id'], 'a')
        self.assertEqual(self.client.get('/api/students/23B81A0999/assignment').status_code, 404)

        self.client.post('/api/students/u1/delete')
        orphans = self.client.get('/api/reconcile/orphans').get_json()['orphans']
        self.assertEqual([o['stop']['id'] for o in orphans], ['a'])

    def test_delete_all_students(self):
        resp = self.client.post('/api/students/delete_all')
        self.assertEqual(resp.get_json()['deleted'], 1)
        resp = self.client.post('/api/students/delete_all')
        self.assertEqual(resp.get_json()['message'], 'No students to delete.')

    def test_delete_all_users(self):
        self.db.put('users', 'admin1', {'name': 'Admin', 'email': 'admin@example.com', 'role': 'admin'})
        resp = self.client.post('/api/users/delete_all')
        self.assertEqual(resp.get_json()['deleted'], 2)
        self.assertEqual(self.db.docs('users'), {})
        resp = self.client.post('/api/users/delete_all')
        self.assertEqual(resp.get_json()['message'], 'No users to delete.')


class NotificationApiTest(ApiTestCase):

    def test_send_and_list(self):
        self.assertEqual(self.client.post('/api/notifications', json={'message': ''}).status_code, 400)
        self.client.post('/api/notifications', json={'message': 'Bus 12 is late'})
        notifications = self.client.get('/api/notifications').get_json()['notifications']
        self.assertEqual([n['message'] for n in notifications], ['Bus 12 is late'])

    def test_sync_names(self):
        self.db.put('routes', 'r1', route_doc(stops=[stop_doc('a', '23B81A0501', 'J. Doe')]))
        resp = self.client.post('/api/reconcile/sync_names')
        self.assertEqual(resp.get_json()['updated'], 1)


class ErrorHandlingTest(ApiTestCase):

    def test_store_outage_is_503(self):
        self.db.put('routes', 'r1', route_doc(stops=[stop_doc('a', '23B81A0501', 'Jane Doe')]))
        with mock.patch.object(FakeDocument, 'delete', side_effect=ServiceUnavailable('backend down')):
            resp = self.client.post('/api/routes/r1/delete')
        self.assertEqual(resp.status_code, 503)
        body = resp.get_json()
        self.assertEqual(body['status'], 'error')
        self.assertIn('route r1', body['message'])
        self.assertIn('r1', self.db.docs('routes'))

    def test_unexpected_error_hides_details(self):
        with mock.patch('cruiser.routes.api.list_notifications', side_effect=RuntimeError('secret internals')):
            with self.assertLogs('cruiser', level='ERROR'):
                resp = self.client.get('/api/notifications')
        self.assertEqual(resp.status_code, 500)
        body = resp.get_json()
        self.assertEqual(body, {'status': 'error', 'message': 'An unexpected error occurred.'})

    def test_unknown_url_keeps_404(self):
        resp = self.client.get('/api/nothing-here')
        self.assertEqual(resp.status_code, 404)


if __name__ == '__main__':
    unittest.main()
