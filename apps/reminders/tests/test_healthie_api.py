import json
from unittest.mock import MagicMock

import requests
from django.test import SimpleTestCase

from apps.reminders.exceptions import SourceUnavailable
from apps.reminders.healthie_api import HealthieAPIClient
from apps.reminders.tests.helpers import api_appointment


def fake_response(status_code=200, body=None, reason='OK'):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.reason = reason
    response.json.return_value = body if body is not None else {}
    return response


class HealthieClientTestCase(SimpleTestCase):

    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.client = HealthieAPIClient(
            api_url='https://healthie.test/graphql',
            api_key='secret-key',
            timeout=5,
            session=self.session
        )

    def sent_payload(self):
        return self.session.post.call_args.kwargs['json']


class FetchUpcomingAppointmentsTest(HealthieClientTestCase):

    def test_returns_normalized_appointments(self):
        self.session.post.return_value = fake_response(body={
            'data': {'appointments': [api_appointment('1'), api_appointment('2', completed=True)]}
        })

        appointments = self.client.fetch_upcoming_appointments()

        self.assertEqual([a.id for a in appointments], ['1', '2'])
        self.assertTrue(appointments[1].patient.has_completed_intake_forms)

    def test_query_requests_org_upcoming_with_intake_flag(self):
        self.session.post.return_value = fake_response(body={'data': {'appointments': []}})

        self.client.fetch_upcoming_appointments()

        query = self.sent_payload()['query']
        self.assertIn('is_org: true', query)
        self.assertIn('filter: "upcoming"', query)
        self.assertIn('has_completed_intake_forms', query)
        self.assertIn('doc_share_id', query)

    def test_sends_auth_and_source_headers(self):
        self.session.post.return_value = fake_response(body={'data': {'appointments': []}})

        self.client.fetch_upcoming_appointments()

        kwargs = self.session.post.call_args.kwargs
        self.assertEqual(kwargs['headers']['Authorization'], 'Basic secret-key')
        self.assertEqual(kwargs['headers']['AuthorizationSource'], 'API')
        self.assertEqual(kwargs['timeout'], 5)

    def test_empty_result_is_empty_list(self):
        self.session.post.return_value = fake_response(body={'data': {'appointments': None}})

        self.assertEqual(self.client.fetch_upcoming_appointments(), [])

    def test_http_error_raises_source_unavailable(self):
        self.session.post.return_value = fake_response(status_code=503, reason='Service Unavailable')

        with self.assertRaises(SourceUnavailable) as ctx:
            self.client.fetch_upcoming_appointments()

        self.assertIn('Service Unavailable', str(ctx.exception))

    def test_graphql_error_raises_source_unavailable(self):
        self.session.post.return_value = fake_response(body={'errors': [{'message': 'Not authorized'}]})

        with self.assertRaises(SourceUnavailable) as ctx:
            self.client.fetch_upcoming_appointments()

        self.assertIn('Not authorized', str(ctx.exception))

    def test_timeout_raises_source_unavailable(self):
        self.session.post.side_effect = requests.exceptions.Timeout()

        with self.assertRaises(SourceUnavailable):
            self.client.fetch_upcoming_appointments()

    def test_connection_error_raises_source_unavailable(self):
        self.session.post.side_effect = requests.exceptions.ConnectionError()

        with self.assertRaises(SourceUnavailable):
            self.client.fetch_upcoming_appointments()

    def test_malformed_appointment_raises_source_unavailable(self):
        self.session.post.return_value = fake_response(body={'data': {'appointments': [{'date': 'x'}]}})

        with self.assertRaises(SourceUnavailable):
            self.client.fetch_upcoming_appointments()

    def test_non_object_body_raises_source_unavailable(self):
        response = fake_response()
        response.json.return_value = [{'id': '1'}]
        self.session.post.return_value = response

        with self.assertRaises(SourceUnavailable) as ctx:
            self.client.fetch_upcoming_appointments()

        self.assertIn('Unexpected Healthie response', str(ctx.exception))

    def test_non_object_data_raises_source_unavailable(self):
        self.session.post.return_value = fake_response(body={'data': ['appointments']})

        with self.assertRaises(SourceUnavailable):
            self.client.fetch_upcoming_appointments()


class CreateConversationTest(HealthieClientTestCase):

    def test_success_returns_conversation_id(self):
        self.session.post.return_value = fake_response(body={
            'data': {'createConversation': {'conversation': {'id': '9001'}, 'messages': None}}
        })

        success, conversation_id, error = self.client.create_conversation('prov-share-1', 'Jane - Intake Reminder', 'note')

        self.assertTrue(success)
        self.assertEqual(conversation_id, '9001')
        self.assertIsNone(error)

    def test_untrusted_text_is_bound_as_variables(self):
        self.session.post.return_value = fake_response(body={
            'data': {'createConversation': {'conversation': {'id': '1'}}}
        })
        hostile_name = 'Robert") { id } mutation { deleteUser(id: "1'

        self.client.create_conversation('prov-share-1', f'{hostile_name} - Intake Reminder', f'Alert: {hostile_name}')

        payload = self.sent_payload()
        self.assertNotIn(hostile_name, payload['query'])
        self.assertEqual(payload['variables']['input']['name'], f'{hostile_name} - Intake Reminder')
        self.assertEqual(payload['variables']['input']['note'], {'content': f'Alert: {hostile_name}'})
        self.assertEqual(payload['variables']['input']['simple_added_users'], 'prov-share-1')
        # Still valid JSON end to end
        json.dumps(payload)

    def test_field_errors_are_failures(self):
        self.session.post.return_value = fake_response(body={
            'data': {'createConversation': {
                'conversation': None,
                'messages': [{'field': 'simple_added_users', 'message': 'is invalid'}]
            }}
        })

        success, conversation_id, error = self.client.create_conversation('bad', 'n', 'note')

        self.assertFalse(success)
        self.assertIsNone(conversation_id)
        self.assertEqual(error, 'simple_added_users: is invalid')

    def test_http_error_is_failure(self):
        self.session.post.return_value = fake_response(status_code=500, reason='Internal Server Error')

        success, conversation_id, error = self.client.create_conversation('prov', 'n', 'note')

        self.assertFalse(success)
        self.assertEqual(error, 'Internal Server Error')

    def test_transport_error_is_failure(self):
        self.session.post.side_effect = requests.exceptions.ConnectionError()

        success, _, error = self.client.create_conversation('prov', 'n', 'note')

        self.assertFalse(success)
        self.assertIn('Connection error', error)

    def test_non_object_body_is_failure(self):
        response = fake_response()
        response.json.return_value = None
        self.session.post.return_value = response

        success, conversation_id, error = self.client.create_conversation('prov', 'n', 'note')

        self.assertFalse(success)
        self.assertIsNone(conversation_id)
        self.assertEqual(error, 'Unexpected Healthie response')
