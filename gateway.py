"""
Client for the remote student record gateway.

The gateway is a small JSON API:

    GET    /students              list, with sort_by / order / class / min_marks / max_marks
    GET    /students/<id>         one record
    POST   /students              create
    PUT    /students/<id>         update (roll_number is never sent)
    DELETE /students/<id>         delete

Every call returns a GatewayResponse instead of raising, so views can turn
any failure into a flash message.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional

import requests
from flask import current_app, g

from models import normalize_student

NETWORK_ERROR_MESSAGE = 'Network or server error.'


class ErrorCode(Enum):
    # no usable answer from the gateway
    NETWORK_ERROR = "NETWORK_ERROR"

    # gateway rejected field values (422 with detail)
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # roll number already taken
    CONFLICT = "CONFLICT"

    NOT_FOUND = "NOT_FOUND"

    # any other non-success answer
    SERVER_ERROR = "SERVER_ERROR"


class GatewayResponse:
    """
    Outcome of a gateway call.

    Attributes:
        success (bool): Whether the gateway accepted the request.
        message (str | None): Human readable explanation, server provided when available.
        error (ErrorCode | None): Failure class, None on success.
        status_code (int | None): HTTP status, None when no response arrived.
        data (dict): Payload, e.g. {"students": [...]} or {"student": {...}}.
    """

    def __init__(
        self,
        success: bool,
        message: str | None = None,
        error: ErrorCode | None = None,
        status_code: int | None = None,
        data: dict | None = None,
    ):
        self._success = success
        self._message = message
        self._error = error
        self._status_code = status_code
        self._data = data or {}

    # === properties ===

    @property
    def success(self) -> bool:
        return self._success

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def error(self) -> ErrorCode | None:
        return self._error

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def data(self) -> dict:
        return self._data

    @property
    def is_conflict(self) -> bool:
        return self._error is ErrorCode.CONFLICT

    @property
    def is_not_found(self) -> bool:
        return self._error is ErrorCode.NOT_FOUND

    # === public classmethods ===

    @classmethod
    def succeed(
        cls,
        message: str | None = None,
        status_code: int | None = 200,
        data: dict | None = None,
    ) -> GatewayResponse:
        return cls(success=True, message=message, status_code=status_code, data=data)

    @classmethod
    def fail(
        cls,
        message: str | None = None,
        error: ErrorCode | None = ErrorCode.SERVER_ERROR,
        status_code: int | None = None,
        data: dict | None = None,
    ) -> GatewayResponse:
        return cls(success=False, message=message, error=error, status_code=status_code, data=data)

    def __str__(self) -> str:
        if self.success:
            return f"Success: {self.message or ''}"
        return f"Error: {self.error.value if self.error else ''} {self.message or ''}".rstrip()


def error_message(body, fallback: str) -> str:
    """
    Pick the message to show for a failed call.

    Prefers the server's `message`; otherwise appends any `detail` (a string
    or a list of {"msg": ...} items) to the fallback.
    """
    if isinstance(body, dict):
        if body.get('message'):
            return str(body['message'])
        detail = body.get('detail')
        if isinstance(detail, list):
            parts = [str(item.get('msg')) if isinstance(item, dict) else str(item) for item in detail]
            detail = '; '.join(part for part in parts if part)
        if detail:
            return f"{fallback} {detail}"
    return fallback


def _accepted(body) -> bool:
    return isinstance(body, dict) and bool(body.get('success'))


def _classify(status_code: int) -> ErrorCode:
    if status_code == 404:
        return ErrorCode.NOT_FOUND
    if status_code == 409:
        return ErrorCode.CONFLICT
    if status_code == 422:
        return ErrorCode.VALIDATION_FAILED
    return ErrorCode.SERVER_ERROR


class RecordGateway:
    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, *parts) -> str:
        return '/'.join([self.base_url, 'students'] + [str(part) for part in parts])

    def _send(self, method: str, url: str, **kwargs):
        """
        Issue one request and decode its JSON body.
        Returns (status_code, body); body is None when it is empty or not JSON.
        Raises requests.RequestException when no response arrives.
        """
        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = None
        return response.status_code, body

    def _fail(self, status_code: int, body, fallback: str) -> GatewayResponse:
        message = error_message(body, fallback)
        self.logger.warning(f"Gateway answered {status_code}: {message}")
        return GatewayResponse.fail(message, error=_classify(status_code), status_code=status_code)

    def _network_failure(self, action: str, e: Exception) -> GatewayResponse:
        self.logger.error(f"Error {action}: {str(e)}")
        return GatewayResponse.fail(NETWORK_ERROR_MESSAGE, error=ErrorCode.NETWORK_ERROR)

    def list_students(self, sort_by: Optional[str] = None, order: Optional[str] = None,
                      student_class: Optional[str] = None, min_marks: Optional[int] = None,
                      max_marks: Optional[int] = None) -> GatewayResponse:
        """
        Fetch the record list. Only the parameters that are set are sent.
        `student_class` goes out as the gateway's `class` filter.
        """
        params = {
            'sort_by': sort_by,
            'order': order,
            'class': student_class,
            'min_marks': min_marks,
            'max_marks': max_marks,
        }
        params = {key: value for key, value in params.items() if value not in (None, '')}

        try:
            status_code, body = self._send('GET', self._url(), params=params)
        except requests.RequestException as e:
            return self._network_failure('fetching students', e)

        if status_code != 200:
            return self._fail(status_code, body, 'Failed to fetch students')

        # Some deployments wrap the list as {"success": true, "data": [...]}
        if isinstance(body, dict):
            if not _accepted(body) or not isinstance(body.get('data'), list):
                return GatewayResponse.fail(error_message(body, 'Failed to fetch students'),
                                            status_code=status_code)
            body = body['data']
        if body is not None and not isinstance(body, list):
            return GatewayResponse.fail('Failed to fetch students', status_code=status_code)

        students = [normalize_student(raw) for raw in body or []]
        self.logger.debug(f"Fetched {len(students)} students with {params}")
        return GatewayResponse.succeed(status_code=status_code, data={'students': students})

    def get_student(self, student_id) -> GatewayResponse:
        try:
            status_code, body = self._send('GET', self._url(student_id))
        except requests.RequestException as e:
            return self._network_failure(f"fetching student {student_id}", e)

        if status_code != 200:
            return self._fail(status_code, body, 'Could not load student data.')

        # Either the bare record or {"success": ..., "data": record}
        if isinstance(body, dict) and isinstance(body.get('data'), dict):
            record = body['data']
        elif isinstance(body, dict) and 'success' not in body:
            record = body
        else:
            return GatewayResponse.fail('Could not load student data.', status_code=status_code)

        return GatewayResponse.succeed(status_code=status_code, data={'student': normalize_student(record)})

    def create_student(self, payload: Dict) -> GatewayResponse:
        try:
            status_code, body = self._send('POST', self._url(), json=payload)
        except requests.RequestException as e:
            return self._network_failure('creating student', e)

        if status_code == 409:
            return GatewayResponse.fail('Roll Number is already taken.', error=ErrorCode.CONFLICT,
                                        status_code=status_code)

        if status_code not in (200, 201):
            return self._fail(status_code, body, 'Failed to save student.')
        if not _accepted(body):
            return GatewayResponse.fail(error_message(body, 'Failed to save student.'), status_code=status_code)

        created = body.get('data') if isinstance(body.get('data'), dict) else payload
        self.logger.info(f"Created student {payload.get('roll_number')}")
        return GatewayResponse.succeed(body.get('message'), status_code=status_code,
                                       data={'student': normalize_student(created)})

    def update_student(self, student_id, payload: Dict) -> GatewayResponse:
        payload = {key: value for key, value in payload.items() if key != 'roll_number'}

        try:
            status_code, body = self._send('PUT', self._url(student_id), json=payload)
        except requests.RequestException as e:
            return self._network_failure(f"updating student {student_id}", e)

        if status_code != 200:
            return self._fail(status_code, body, 'Failed to save student.')
        if not _accepted(body):
            return GatewayResponse.fail(error_message(body, 'Failed to save student.'), status_code=status_code)

        self.logger.info(f"Updated student {student_id}")
        return GatewayResponse.succeed(body.get('message'), status_code=status_code)

    def delete_student(self, student_id) -> GatewayResponse:
        try:
            status_code, body = self._send('DELETE', self._url(student_id))
        except requests.RequestException as e:
            return self._network_failure(f"deleting student {student_id}", e)

        if status_code not in (200, 204):
            return self._fail(status_code, body, 'Failed to delete student')
        # 204 carries no body to inspect
        if status_code == 200 and not _accepted(body):
            return GatewayResponse.fail(error_message(body, 'Failed to delete student'), status_code=status_code)

        self.logger.info(f"Deleted student {student_id}")
        return GatewayResponse.succeed(status_code=status_code)


def get_gateway() -> RecordGateway:
    """Get the gateway client for the current app context"""
    if 'gateway' not in g:
        gateway = current_app.config.get('RECORD_GATEWAY')
        if gateway is None:
            gateway = RecordGateway(
                current_app.config['RECORD_GATEWAY_URL'],
                timeout=current_app.config.get('RECORD_GATEWAY_TIMEOUT', 10),
            )
        g.gateway = gateway
    return g.gateway


def close_gateway(e=None):
    """Close the gateway session, unless it was injected through config"""
    gateway = g.pop('gateway', None)
    if gateway is not None and gateway is not current_app.config.get('RECORD_GATEWAY'):
        gateway.session.close()
