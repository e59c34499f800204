"""
Google Service - Drive uploads and Calendar events through a service identity.

Credentials:
- Workload identity federation when GCP_WORKLOAD_IDENTITY_PROVIDER and
  VERCEL_OIDC_TOKEN are both set (the OIDC token is exchanged at STS and
  the configured service account is impersonated)
- Application Default Credentials otherwise

Every operation is a single REST call through an AuthorizedSession.
Nothing is cached between requests and nothing is retried.
"""

import base64
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple

import requests
import google.auth
from google.auth import exceptions as google_auth_exceptions
from google.auth import identity_pool
from google.auth.transport.requests import AuthorizedSession

logger = logging.getLogger(__name__)

SCOPES = [
    'https://www.googleapis.com/auth/cloud-platform',
    'https://www.googleapis.com/auth/drive.file',
    'https://www.googleapis.com/auth/drive.metadata.readonly',
    'https://www.googleapis.com/auth/calendar.events',
]

STS_TOKEN_URL = 'https://sts.googleapis.com/v1/token'
JWT_TOKEN_TYPE = 'urn:ietf:params:oauth:token-type:jwt'
IMPERSONATION_URL = ('https://iamcredentials.googleapis.com/v1/projects/-/serviceAccounts/'
                     '{email}:generateAccessToken')

DRIVE_FILES_URL = 'https://www.googleapis.com/drive/v3/files'
DRIVE_UPLOAD_URL = 'https://www.googleapis.com/upload/drive/v3/files?uploadType=multipart'
CALENDAR_EVENTS_URL = 'https://www.googleapis.com/calendar/v3/calendars/primary/events'
RESOURCE_MANAGER_URL = 'https://cloudresourcemanager.googleapis.com/v3/projects/{project}'

FOLDER_MIMETYPE = 'application/vnd.google-apps.folder'
MULTIPART_BOUNDARY = '-------314159265358979323846'

LOCAL_FIX_INSTRUCTIONS = ("Para solucionar esto en tu máquina local, ejecuta: "
                          "gcloud auth application-default login")


class GoogleServiceError(Exception):
    """Raised when a Google API call fails."""

    status_code = 500

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {'success': False, 'error': self.message, 'details': self.details}


class GoogleServiceInputError(GoogleServiceError):
    """Raised when a request is missing data the action needs."""

    status_code = 400

    def to_dict(self) -> Dict[str, Any]:
        return {'success': False, 'error': self.message}


class GoogleCredentialsMissing(GoogleServiceError):
    """Raised when no credentials can be found in this environment."""

    status_code = 401

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': False,
            'error': self.message,
            'details': self.details,
            'fix_local': LOCAL_FIX_INSTRUCTIONS,
            'production': 'Con Workload Identity configurado este error no debería ocurrir.',
        }


class _OidcTokenSupplier(identity_pool.SubjectTokenSupplier):
    """Hands the platform's OIDC token to the STS exchange."""

    def __init__(self, token: str):
        self._token = token

    def get_subject_token(self, context, request):
        return self._token


def split_base64(content: str, mime_type: str) -> Tuple[str, bool]:
    """
    Return the upload payload and whether it is base64-encoded.

    A data URL is stripped to its payload. PDFs are always sent as base64.
    """
    if 'base64,' in content:
        return content.split('base64,', 1)[1], True
    return content, mime_type == 'application/pdf'


def build_multipart_body(metadata: Dict, content: str, mime_type: str, is_base64: bool) -> str:
    delimiter = f"\r\n--{MULTIPART_BOUNDARY}\r\n"
    close_delim = f"\r\n--{MULTIPART_BOUNDARY}--"
    encoding = '\r\nContent-Transfer-Encoding: base64' if is_base64 else ''
    return (
        delimiter
        + 'Content-Type: application/json; charset=UTF-8\r\n\r\n'
        + json.dumps(metadata)
        + delimiter
        + f"Content-Type: {mime_type}{encoding}\r\n\r\n"
        + content
        + close_delim
    )


def _rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class GoogleService:
    """Drive, Calendar and Resource Manager calls for the business account."""

    def __init__(self, config):
        self.workload_provider = config.get('GCP_WORKLOAD_IDENTITY_PROVIDER')
        self.oidc_token = config.get('VERCEL_OIDC_TOKEN')
        self.project_id = config.get('GCP_PROJECT_ID')
        self.service_account_email = config.get('GCP_SERVICE_ACCOUNT_EMAIL')
        self.folder_name = config.get('GOOGLE_DRIVE_FOLDER') or '0Facturas Servitec Pro'
        self.timezone = config.get('GOOGLE_CALENDAR_TIMEZONE') or 'America/Bogota'
        self.timeout = config.get('GOOGLE_REQUEST_TIMEOUT') or 30

    # ---------------------------------------------------------------------
    # Credentials
    # ---------------------------------------------------------------------

    @property
    def uses_workload_identity(self) -> bool:
        return bool(self.workload_provider and self.oidc_token)

    def resolve_credentials(self) -> Tuple[Any, Optional[str]]:
        """
        Build credentials for this environment.

        Returns:
            (credentials, project_id)

        Raises:
            GoogleCredentialsMissing: If ADC finds nothing
        """
        if self.uses_workload_identity:
            logger.info("Using workload identity federation for Google APIs")
            impersonation = None
            if self.service_account_email:
                impersonation = IMPERSONATION_URL.format(email=self.service_account_email)
            credentials = identity_pool.Credentials(
                audience=f"//iam.googleapis.com/{self.workload_provider}",
                subject_token_type=JWT_TOKEN_TYPE,
                token_url=STS_TOKEN_URL,
                subject_token_supplier=_OidcTokenSupplier(self.oidc_token),
                service_account_impersonation_url=impersonation,
                scopes=SCOPES,
            )
            return credentials, self.project_id

        try:
            credentials, project_id = google.auth.default(scopes=SCOPES)
        except google_auth_exceptions.DefaultCredentialsError as e:
            logger.warning(f"Google default credentials not found: {e}")
            raise GoogleCredentialsMissing(
                'Credenciales de Google no encontradas en este entorno', str(e)
            )
        return credentials, self.project_id or project_id

    def session(self) -> AuthorizedSession:
        """Fresh authorized session; credentials are resolved on every call."""
        credentials, _ = self.resolve_credentials()
        return AuthorizedSession(credentials)

    def _request(self, method: str, url: str, **kwargs):
        session = self.session()
        try:
            response = session.request(method, url, timeout=self.timeout, **kwargs)
        except google_auth_exceptions.GoogleAuthError as e:
            logger.error(f"Google auth failure on {method} {url}: {e}")
            raise GoogleServiceError('Fallo en la comunicación con Google API', str(e))
        except requests.RequestException as e:
            logger.error(f"Google request failed on {method} {url}: {e}")
            raise GoogleServiceError('Fallo en la comunicación con Google API', str(e))

        if response.status_code >= 400:
            logger.error(f"Google API {method} {url} returned {response.status_code}")
            raise GoogleServiceError('Fallo en la comunicación con Google API', response.text)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # ---------------------------------------------------------------------
    # Drive
    # ---------------------------------------------------------------------

    def get_or_create_folder(self, folder_name: str = None) -> str:
        folder_name = folder_name or self.folder_name
        query = (f"name='{folder_name}' and mimeType='{FOLDER_MIMETYPE}' "
                 "and trashed=false")
        found = self._request('GET', DRIVE_FILES_URL, params={'q': query, 'fields': 'files(id,name)'})
        files = found.get('files') or []
        if files:
            return files[0]['id']

        created = self._request('POST', DRIVE_FILES_URL, json={
            'name': folder_name,
            'mimeType': FOLDER_MIMETYPE,
        })
        logger.info(f"Created Drive folder '{folder_name}': {created.get('id')}")
        return created['id']

    def upload_to_drive(self, file_name: str, content, mime_type: str = 'text/plain') -> Dict:
        """
        Upload a file into the invoices folder.

        Args:
            file_name: Name shown in Drive
            content: Text, base64 text, data URL, or raw bytes
            mime_type: Content type of the file

        Raises:
            GoogleServiceInputError: If file_name or content is missing
        """
        if not file_name or not content:
            raise GoogleServiceInputError('Faltan datos: fileName o content')

        mime_type = mime_type or 'text/plain'
        if isinstance(content, bytes):
            payload, is_base64 = base64.b64encode(content).decode('ascii'), True
        else:
            payload, is_base64 = split_base64(content, mime_type)

        folder_id = self.get_or_create_folder()
        metadata = {'name': file_name, 'mimeType': mime_type, 'parents': [folder_id]}
        body = build_multipart_body(metadata, payload, mime_type, is_base64)

        created = self._request(
            'POST', DRIVE_UPLOAD_URL,
            data=body.encode('utf-8'),
            headers={'Content-Type': f'multipart/related; boundary={MULTIPART_BOUNDARY}'}
        )
        logger.info(f"Uploaded {file_name} to Drive: {created.get('id')}")
        return {
            'success': True,
            'fileId': created.get('id'),
            'message': f"Archivo guardado en '{self.folder_name}' correctamente",
        }

    # ---------------------------------------------------------------------
    # Calendar
    # ---------------------------------------------------------------------

    def create_calendar_event(self, event: Dict) -> Dict:
        """
        Create an event on the primary calendar with a 30-minute popup.

        Raises:
            GoogleServiceInputError: If the event data is missing
        """
        if not event:
            raise GoogleServiceInputError('Faltan datos del evento')
        if not event.get('start') or not event.get('end'):
            raise GoogleServiceInputError('El evento requiere start y end')

        created = self._request('POST', CALENDAR_EVENTS_URL, json={
            'summary': event.get('summary'),
            'location': event.get('location'),
            'description': event.get('description'),
            'start': {'dateTime': event['start'], 'timeZone': self.timezone},
            'end': {'dateTime': event['end'], 'timeZone': self.timezone},
            'reminders': {
                'useDefault': False,
                'overrides': [{'method': 'popup', 'minutes': 30}],
            },
        })
        logger.info(f"Created calendar event {created.get('id')}")
        return {
            'success': True,
            'eventId': created.get('id'),
            'link': created.get('htmlLink'),
            'message': 'Cita programada en Google Calendar',
        }

    def list_calendar_events(self, time_min: str = None, time_max: str = None) -> Dict:
        """Single events between two instants, defaulting to the next 30 days."""
        now = datetime.now(timezone.utc)
        params = {
            'timeMin': time_min or _rfc3339(now),
            'timeMax': time_max or _rfc3339(now + timedelta(days=30)),
            'singleEvents': 'true',
            'orderBy': 'startTime',
        }
        result = self._request('GET', CALENDAR_EVENTS_URL, params=params)
        return {'success': True, 'events': result.get('items') or []}

    def delete_calendar_event(self, event_id: str) -> Dict:
        if not event_id:
            raise GoogleServiceInputError('Falta eventId')
        self._request('DELETE', f"{CALENDAR_EVENTS_URL}/{event_id}")
        logger.info(f"Deleted calendar event {event_id}")
        return {'success': True, 'message': 'Evento eliminado'}

    # ---------------------------------------------------------------------
    # Diagnostics
    # ---------------------------------------------------------------------

    def status(self) -> Dict:
        """Resolve credentials and report the active project."""
        _, project_id = self.resolve_credentials()
        return {'success': True, 'projectId': project_id,
                'message': 'Servicio de Google activo.'}

    def check_connection(self) -> Dict:
        """Fetch the project from Cloud Resource Manager to prove the credentials work."""
        credentials, project_id = self.resolve_credentials()
        if not project_id:
            raise GoogleServiceError('Error al conectar con Google Cloud',
                                     'No se pudo determinar el proyecto (GCP_PROJECT_ID)')
        project = self._request('GET', RESOURCE_MANAGER_URL.format(project=project_id))
        account = getattr(credentials, 'service_account_email', None) or \
            (self.service_account_email if self.uses_workload_identity else None)
        return {
            'status': 'Conexión Exitosa',
            'project': project.get('displayName'),
            'serviceAccount': account or 'Vercel OIDC Active',
        }

    def handle_action(self, payload: Dict) -> Dict:
        """Dispatch a POST /api/google-service body by its `action` field."""
        action = payload.get('action')
        if action == 'upload_to_drive':
            return self.upload_to_drive(payload.get('fileName'), payload.get('content'),
                                        payload.get('mimeType') or 'text/plain')
        if action == 'create_calendar_event':
            return self.create_calendar_event(payload.get('calendarEvent'))
        if action == 'list_calendar_events':
            return self.list_calendar_events(payload.get('timeMin'), payload.get('timeMax'))
        if action == 'delete_calendar_event':
            return self.delete_calendar_event(payload.get('eventId'))
        return self.status()
