# tests/conftest.py

import pytest

from app import app as flask_app
from gateway import ErrorCode, GatewayResponse
from models import normalize_student
from validation import parse_marks


class FakeGateway:
    """
    In-memory stand-in for the record gateway.

    Mirrors the remote contract: sorting, the class / marks filters,
    roll number uniqueness and roll numbers that never change on update.
    """

    def __init__(self, students=None):
        self.students = {}
        self.calls = []
        self.next_id = 1
        self.fail_next = None
        for student in students or []:
            self._store(dict(student))

    def _store(self, student):
        if student.get('id') is None:
            student['id'] = str(self.next_id)
        self.next_id += 1
        self.students[str(student['id'])] = normalize_student(student)
        return self.students[str(student['id'])]

    def _pop_failure(self):
        failure, self.fail_next = self.fail_next, None
        return failure

    def list_students(self, sort_by=None, order=None, student_class=None, min_marks=None, max_marks=None):
        self.calls.append(('list', sort_by, order, student_class, min_marks, max_marks))
        failure = self._pop_failure()
        if failure:
            return failure

        rows = list(self.students.values())
        if student_class:
            rows = [s for s in rows if s['student_class'] == student_class]
        if min_marks is not None:
            rows = [s for s in rows if parse_marks(s['marks']).ok and s['marks'] >= min_marks]
        if max_marks is not None:
            rows = [s for s in rows if parse_marks(s['marks']).ok and s['marks'] <= max_marks]
        if sort_by:
            rows.sort(key=lambda s: (s[sort_by] is None, s[sort_by]), reverse=(order == 'desc'))
        return GatewayResponse.succeed(data={'students': [dict(s) for s in rows]})

    def get_student(self, student_id):
        self.calls.append(('get', student_id))
        failure = self._pop_failure()
        if failure:
            return failure
        student = self.students.get(str(student_id))
        if student is None:
            return GatewayResponse.fail('Student not found', error=ErrorCode.NOT_FOUND, status_code=404)
        return GatewayResponse.succeed(data={'student': dict(student)})

    def create_student(self, payload):
        self.calls.append(('create', dict(payload)))
        failure = self._pop_failure()
        if failure:
            return failure
        taken = {s['roll_number'].lower() for s in self.students.values() if s['roll_number']}
        if payload['roll_number'].lower() in taken:
            return GatewayResponse.fail('Roll Number is already taken.', error=ErrorCode.CONFLICT, status_code=409)
        created = self._store(dict(payload, id=None))
        return GatewayResponse.succeed(status_code=201, data={'student': dict(created)})

    def update_student(self, student_id, payload):
        self.calls.append(('update', student_id, dict(payload)))
        failure = self._pop_failure()
        if failure:
            return failure
        student = self.students.get(str(student_id))
        if student is None:
            return GatewayResponse.fail('Student not found', error=ErrorCode.NOT_FOUND, status_code=404)
        student.update({k: v for k, v in payload.items() if k not in ('id', 'roll_number')})
        return GatewayResponse.succeed()

    def delete_student(self, student_id):
        self.calls.append(('delete', student_id))
        failure = self._pop_failure()
        if failure:
            return failure
        if self.students.pop(str(student_id), None) is None:
            return GatewayResponse.fail('Student not found', error=ErrorCode.NOT_FOUND, status_code=404)
        return GatewayResponse.succeed()


@pytest.fixture
def sample_students():
    return [
        {'id': '1', 'name': 'Asha Rao', 'roll_number': 'R001', 'student_class': '10A', 'marks': 90,
         'gender': 'Female', 'contact': '+91 98765 43210'},
        {'id': '2', 'name': 'Vikram Shah', 'roll_number': 'R002', 'student_class': '10A', 'marks': 70,
         'gender': 'Male', 'contact': None},
        {'id': '3', 'name': 'Meera Iyer', 'roll_number': 'R003', 'student_class': '10B', 'marks': 50,
         'gender': None, 'contact': None},
    ]


@pytest.fixture
def fake_gateway(sample_students):
    return FakeGateway(sample_students)


@pytest.fixture
def app(fake_gateway, tmp_path):
    flask_app.config.update(
        TESTING=True,
        RECORD_GATEWAY=fake_gateway,
        EXPORT_FOLDER=str(tmp_path / "exports"),
    )
    for key in ('ROSTER_SNAPSHOT', 'ROLL_NUMBER_SNAPSHOT'):
        flask_app.config.pop(key, None)
    yield flask_app
    flask_app.config.pop('RECORD_GATEWAY', None)


@pytest.fixture
def client(app):
    return app.test_client()
