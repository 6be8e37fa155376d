"""
Testing approach:
- Parsing of Healthie appointment payloads
- Date parsing (offsets, naive values, garbage)
- The 24 hour window boundary
"""

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase
from django.utils import timezone

from apps.reminders.appointments import Appointment, filter_within_window, parse_appointment_date
from apps.reminders.tests.helpers import api_appointment, make_appointment


class AppointmentFromApiTest(SimpleTestCase):

    def test_full_payload(self):
        appointment = Appointment.from_api(api_appointment('101', patient_name='Ana Ruiz'))

        self.assertEqual(appointment.id, '101')
        self.assertEqual(appointment.contact_type, 'Video Call')
        self.assertEqual(appointment.provider.full_name, 'Dr. Sam Lee')
        self.assertEqual(appointment.provider.messaging_channel_id, 'prov-share-1')
        self.assertEqual(appointment.patient.full_name, 'Ana Ruiz')
        self.assertFalse(appointment.patient.has_completed_intake_forms)
        self.assertEqual(appointment.appointment_type.name, 'Initial Consult')
        self.assertEqual(appointment.length, 60)
        self.assertIsNotNone(appointment.scheduled_at)
        self.assertTrue(appointment.needs_intake_reminder())

    def test_missing_user(self):
        appointment = make_appointment('102', with_user=False)

        self.assertIsNone(appointment.patient)
        self.assertEqual(appointment.patient_name, '')
        self.assertFalse(appointment.needs_intake_reminder())

    def test_completed_intake_needs_no_reminder(self):
        appointment = make_appointment('103', completed=True)

        self.assertFalse(appointment.needs_intake_reminder())

    def test_numeric_id_is_normalized_to_string(self):
        data = api_appointment('x')
        data['id'] = 555

        self.assertEqual(Appointment.from_api(data).id, '555')


class ParseAppointmentDateTest(SimpleTestCase):

    def test_healthie_format_with_offset(self):
        parsed = parse_appointment_date('2024-03-01 09:30:00 -0500')

        self.assertEqual(parsed, datetime(2024, 3, 1, 14, 30, tzinfo=dt_timezone.utc))

    def test_naive_value_uses_clinic_time_zone(self):
        parsed = parse_appointment_date('2024-03-01 09:30:00')

        self.assertTrue(timezone.is_aware(parsed))
        self.assertEqual(timezone.localtime(parsed).hour, 9)

    def test_unparseable_value(self):
        self.assertIsNone(parse_appointment_date('not a date'))
        self.assertIsNone(parse_appointment_date(''))


class WindowFilterTest(SimpleTestCase):

    def setUp(self):
        self.now = datetime(2026, 10, 18, 12, 0, tzinfo=dt_timezone.utc)

    def _at(self, appointment_id, delta):
        return make_appointment(appointment_id, starts_in=delta, now=self.now)

    def test_exactly_24_hours_ahead_is_included(self):
        appointment = self._at('edge', timedelta(hours=24))

        self.assertEqual(filter_within_window([appointment], now=self.now), [appointment])

    def test_one_millisecond_past_24_hours_is_excluded(self):
        appointment = self._at('late', timedelta(hours=24, milliseconds=1))

        self.assertEqual(filter_within_window([appointment], now=self.now), [])

    def test_past_appointments_are_kept(self):
        appointment = self._at('past', -timedelta(hours=3))

        self.assertEqual(filter_within_window([appointment], now=self.now), [appointment])

    def test_unknown_date_is_dropped(self):
        data = api_appointment('bad', now=self.now)
        data['date'] = 'soon'
        appointment = Appointment.from_api(data)

        self.assertEqual(filter_within_window([appointment], now=self.now), [])

    def test_source_order_is_preserved(self):
        first = self._at('1', timedelta(hours=5))
        second = self._at('2', timedelta(hours=1))
        too_far = self._at('3', timedelta(days=2))

        self.assertEqual(filter_within_window([first, too_far, second], now=self.now), [first, second])

    def test_custom_window(self):
        appointment = self._at('soon', timedelta(hours=3))

        self.assertEqual(filter_within_window([appointment], now=self.now, window=timedelta(hours=2)), [])
