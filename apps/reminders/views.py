import hmac
import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .exceptions import LedgerUnavailable, SourceUnavailable
from .ledger import Ledger
from .models import ReminderRecord
from .pipeline import ReminderContext, run_reminder_check

logger = logging.getLogger(__name__)


def _token_is_valid(request):
    expected = settings.REMINDER_TRIGGER_TOKEN
    if not expected:
        return True
    supplied = request.headers.get('X-Trigger-Token', '')
    return hmac.compare_digest(supplied, expected)


@csrf_exempt
@require_http_methods(["POST"])
def check_appointments_api(request):
    """Run one reminder pass now and return its summary"""

    if not _token_is_valid(request):
        logger.error("On-demand reminder check rejected: invalid trigger token")
        return JsonResponse({
            'status': 'error',
            'message': 'Invalid trigger token'
        }, status=401)

    logger.info("On-demand reminder check requested")

    try:
        summary = run_reminder_check(ReminderContext.from_settings())

    except SourceUnavailable as e:
        logger.error(f"Error processing appointments: {e}")
        return JsonResponse({
            'message': 'Error processing appointments',
            'error': str(e),
            'timestamp': timezone.now().isoformat()
        }, status=502)

    return JsonResponse({
        'message': 'Successfully processed appointments',
        'results': summary.to_dict(),
        'timestamp': timezone.now().isoformat()
    }, status=200)


def _serialize_sent(record):
    return {
        'id': str(record.id),
        'appointmentId': record.appointment_id,
        'createdAt': record.created_at.isoformat(),
        'patientName': record.patient_name,
        'appointmentDate': record.appointment_date.isoformat() if record.appointment_date else None,
        'conversationId': record.conversation_id,
        'message': record.reminder_note,
    }


def _serialize_failed(record):
    return {
        'id': str(record.id),
        'appointmentId': record.appointment_id,
        'createdAt': record.created_at.isoformat(),
        'patientName': record.patient_name,
        'appointmentDate': record.appointment_date.isoformat() if record.appointment_date else None,
        'error': record.error,
    }


@require_http_methods(["GET"])
def recent_reminders_api(request):
    """Most recent SENT and FAILED ledger records, newest first"""

    ledger = Ledger()
    limit = settings.REMINDER_RECENT_LIMIT

    try:
        sent = ledger.recent(ReminderRecord.STATUS_SENT, limit)
        failed = ledger.recent(ReminderRecord.STATUS_FAILED, limit)

    except LedgerUnavailable as e:
        logger.error(f"Failed to fetch reminders: {str(e)}", exc_info=True)
        return JsonResponse({
            'success': False,
            'error': 'Failed to fetch reminders'
        }, status=500)

    return JsonResponse({
        'success': True,
        'sent': [_serialize_sent(record) for record in sent],
        'failed': [_serialize_failed(record) for record in failed],
    })
