"""
Create / edit form for a single student.

One form class serves both pages; `mode` decides whether the roll number
is editable, whether the advisory uniqueness check runs, and whether a
submit creates or updates.
"""

import logging
from typing import Dict, Iterable, Optional

from validation import validate_student

CREATE = 'create'
EDIT = 'edit'

# Form states
IDLE = 'idle'
VALIDATING = 'validating'
SUBMITTING = 'submitting'
SUCCESS = 'success'
ERROR = 'error'

FORM_FIELDS = ('name', 'roll_number', 'student_class', 'marks', 'gender', 'contact')


class StudentForm:
    def __init__(self, mode: str = CREATE, student_id=None, values: Optional[Dict] = None):
        self.logger = logging.getLogger(__name__)
        self.mode = mode
        self.student_id = student_id
        self.values = {field: '' for field in FORM_FIELDS}
        for field, value in (values or {}).items():
            if field in self.values:
                self.values[field] = '' if value is None else str(value)
        self.errors: Dict[str, str] = {}
        self.status = {'type': '', 'message': ''}
        self.state = IDLE

    @classmethod
    def from_record(cls, student: Dict) -> 'StudentForm':
        """Pre-fill an edit form from a fetched record."""
        return cls(EDIT, student_id=student.get('id'), values=student)

    @classmethod
    def from_request(cls, form_data, mode: str = CREATE, student_id=None) -> 'StudentForm':
        """
        Build a form from posted values. Each value goes through set_field,
        so in edit mode the posted roll number is only shown, never sent.
        """
        form = cls(mode, student_id=student_id, values={'roll_number': form_data.get('roll_number', '')})
        for field in FORM_FIELDS:
            form.set_field(field, form_data.get(field, ''))
        return form

    @property
    def is_edit(self) -> bool:
        return self.mode == EDIT

    @property
    def busy(self) -> bool:
        return self.state == SUBMITTING

    def set_field(self, name: str, value) -> None:
        """Editing a field clears its error and returns the form to idle."""
        if name == 'roll_number' and self.is_edit:
            return
        self.values[name] = '' if value is None else str(value)
        self.errors.pop(name, None)
        self.state = IDLE

    def reset(self) -> None:
        self.values = {field: '' for field in FORM_FIELDS}
        self.errors = {}

    def validate(self, existing: Optional[Iterable[Dict]] = None) -> Dict[str, str]:
        self.state = VALIDATING
        self.errors = validate_student(self.values, mode=self.mode, existing=existing)
        return self.errors

    def payload(self) -> Dict:
        """Body for the gateway. Only call once the values validate."""
        payload = {
            'name': self.values['name'].strip(),
            'student_class': self.values['student_class'].strip(),
            'marks': int(self.values['marks']),
            'gender': self.values['gender'] or None,
            'contact': self.values['contact'].strip() or None,
        }
        if not self.is_edit:
            payload['roll_number'] = self.values['roll_number'].strip()
        return payload

    def _set_status(self, kind: str, message: str) -> None:
        self.status = {'type': kind, 'message': message}
        self.state = SUCCESS if kind == 'success' else ERROR

    def fail(self, message: str) -> None:
        """Mark the submit as failed, leaving the values for a retry."""
        self._set_status('error', message)

    def submit(self, gateway, existing: Optional[Iterable[Dict]] = None) -> bool:
        """
        Validate and, when clean, send the form to the gateway.

        Returns True on success. Invalid forms never reach the gateway.
        A duplicate roll number reported by the gateway wins over the local
        pre-check and marks the roll number field.
        """
        self.status = {'type': '', 'message': ''}
        if self.validate(existing):
            self.state = IDLE
            return False

        self.state = SUBMITTING
        if self.is_edit:
            result = gateway.update_student(self.student_id, self.payload())
        else:
            result = gateway.create_student(self.payload())

        if result.success:
            if self.is_edit:
                self._set_status('success', 'Student updated successfully!')
            else:
                self._set_status('success', 'Student added successfully!')
                self.reset()
            return True

        if result.is_conflict:
            self.errors = {'roll_number': 'Roll Number must be unique'}
            self._set_status('error', 'Roll Number is already taken.')
        else:
            self._set_status('error', result.message or 'Network or server error.')
        self.logger.warning(f"Student form {self.mode} failed: {self.status['message']}")
        return False
