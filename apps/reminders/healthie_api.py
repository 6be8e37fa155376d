"""
This module handles communication with the Healthie GraphQL API.

Features:
- Fetch the organization's upcoming appointments
- Create a provider-facing conversation with a note
- Handle transport, HTTP and GraphQL errors
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from django.conf import settings

from .appointments import Appointment
from .exceptions import SourceUnavailable

logger = logging.getLogger(__name__)


UPCOMING_APPOINTMENTS_QUERY = """
query upcomingAppointments {
  appointments(is_org: true, filter: "upcoming") {
    id
    date
    contact_type
    length
    location
    provider {
      id
      full_name
      doc_share_id
    }
    appointment_type {
      id
      name
    }
    user {
      id
      full_name
      has_completed_intake_forms
    }
  }
}
"""

# Patient and provider data travel in $input, never in the query text
CREATE_CONVERSATION_MUTATION = """
mutation createConversation($input: createConversationInput) {
  createConversation(input: $input) {
    conversation {
      id
    }
    messages {
      field
      message
    }
  }
}
"""


class HealthieAPIClient:

    def __init__(self, api_url: str, api_key: str, auth_scheme: str = 'Basic', timeout: int = 30,
                 session: Optional[requests.Session] = None):

        self.api_url = api_url
        self.api_key = api_key
        self.auth_scheme = auth_scheme
        self.timeout = timeout
        # One session per client so the connection pool is reused across calls
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> 'HealthieAPIClient':
        return cls(
            api_url=settings.HEALTHIE_API_URL,
            api_key=settings.HEALTHIE_API_KEY,
            auth_scheme=settings.HEALTHIE_AUTH_SCHEME,
            timeout=settings.HEALTHIE_TIMEOUT,
        )

    def _get_headers(self) -> Dict[str, str]:

        return {
            'Content-Type': 'application/json',
            'Authorization': f'{self.auth_scheme} {self.api_key}',
            'AuthorizationSource': 'API',
        }

    def _make_request(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Tuple[bool, Optional[Dict], Optional[str]]:
        """
        POST one GraphQL document.

        Returns (success, data, error). `data` is the GraphQL `data` object;
        `error` describes a transport, HTTP or GraphQL-level failure.
        """
        payload = {'query': query}
        if variables is not None:
            payload['variables'] = variables

        try:
            logger.info(f"Making POST request to {self.api_url}")
            response = self.session.post(
                self.api_url,
                headers=self._get_headers(),
                json=payload,
                timeout=self.timeout
            )
            logger.info(f"Response status: {response.status_code}")

            if not response.ok:
                error_message = response.reason or f"API returned {response.status_code}"
                logger.error(f"API error: {response.status_code} {error_message}")
                return False, None, error_message

            try:
                body = response.json()
            except ValueError:
                error_message = "Invalid JSON in Healthie response"
                logger.error(error_message)
                return False, None, error_message

            if not isinstance(body, dict):
                error_message = "Unexpected Healthie response"
                logger.error(f"{error_message}: {body!r}")
                return False, None, error_message

            if body.get('errors'):
                error_message = f"GraphQL Error: {body['errors']}"
                logger.error(error_message)
                return False, None, error_message

            data = body.get('data') or {}
            if not isinstance(data, dict):
                error_message = "Unexpected Healthie response"
                logger.error(f"{error_message}: data is {data!r}")
                return False, None, error_message

            return True, data, None

        except requests.exceptions.Timeout:
            error_message = "Request timeout - Healthie API did not respond"
            logger.error(error_message)
            return False, None, error_message

        except requests.exceptions.ConnectionError:
            error_message = "Connection error - Could not reach Healthie API"
            logger.error(error_message)
            return False, None, error_message

        except requests.exceptions.RequestException as e:
            error_message = f"Request error: {str(e)}"
            logger.error(error_message)
            return False, None, error_message

    def fetch_upcoming_appointments(self) -> List[Appointment]:
        """
        Return every upcoming appointment of the organization.

        Raises SourceUnavailable when the query does not succeed. An empty
        result is an empty list.
        """
        logger.info("Fetching upcoming appointments")

        success, data, error = self._make_request(UPCOMING_APPOINTMENTS_QUERY)
        if not success:
            raise SourceUnavailable(f"Could not fetch appointments: {error}")

        items = data.get('appointments')
        if not items:
            logger.info("No appointments found")
            return []

        try:
            appointments = [Appointment.from_api(item) for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise SourceUnavailable(f"Malformed appointments response: {e!r}") from e

        logger.info(f"Fetched {len(appointments)} upcoming appointments")
        return appointments

    def create_conversation(self, provider_user_id: str, name: str, note: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Create a conversation shared with the provider, seeded with `note`.

        Returns (success, conversation_id, error).
        """
        logger.info(f"Creating conversation for provider {provider_user_id}")

        variables = {
            'input': {
                'simple_added_users': provider_user_id,
                'name': name,
                'note': {'content': note},
            }
        }
        success, data, error = self._make_request(CREATE_CONVERSATION_MUTATION, variables)
        if not success:
            return False, None, error

        result = data.get('createConversation') or {}
        field_errors = result.get('messages') or []
        if field_errors:
            error = '; '.join(f"{item.get('field')}: {item.get('message')}" for item in field_errors)
            logger.error(f"createConversation rejected: {error}")
            return False, None, error

        conversation = result.get('conversation') or {}
        conversation_id = conversation.get('id')
        if not conversation_id:
            return False, None, "createConversation returned no conversation"

        logger.info(f"Conversation created. ID: {conversation_id}")
        return True, str(conversation_id), None
