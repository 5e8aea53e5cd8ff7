"""
Field rules for student records.

Every rule works on the raw values a form posts (strings, before any
coercion) and reports a human readable message per failing field.
Fields that pass are left out of the result.
"""

import math
import re
from typing import Dict, Iterable, NamedTuple, Optional, Union

from models import GENDER_CHOICES

MARKS_MIN = 0
MARKS_MAX = 100

_DIGITS_RE = re.compile(r'[0-9]+')
_CONTACT_RE = re.compile(r'[0-9 ()+\-]{7,24}')


class ParsedMarks(NamedTuple):
    ok: bool
    value: Optional[float] = None


def parse_marks(value: Union[str, int, float, None]) -> ParsedMarks:
    """
    Parse a marks value coming from the gateway or a form.

    Returns ParsedMarks(ok=False) for anything that is not a finite number,
    so callers never compare against NaN.
    """
    if value is None or isinstance(value, bool):
        return ParsedMarks(False)

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return ParsedMarks(False)
        try:
            number = float(text)
        except ValueError:
            return ParsedMarks(False)

    if not math.isfinite(number):
        return ParsedMarks(False)
    return ParsedMarks(True, number)


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def is_roll_number_taken(roll_number: str, existing: Optional[Iterable[Dict]]) -> bool:
    """Case-insensitive match against the last fetched records."""
    candidate = (roll_number or '').strip().lower()
    if not candidate:
        return False
    for student in existing or []:
        other = student.get('roll_number')
        if other is not None and str(other).lower() == candidate:
            return True
    return False


def validate_marks(marks) -> Optional[str]:
    if marks is None or marks == '':
        return 'Marks required'
    if not _DIGITS_RE.fullmatch(str(marks)):
        return 'Marks must be a number'
    if not MARKS_MIN <= int(str(marks)) <= MARKS_MAX:
        return 'Marks must be 0-100'
    return None


def validate_student(values: Dict, mode: str = 'create',
                     existing: Optional[Iterable[Dict]] = None) -> Dict[str, str]:
    """
    Check a candidate record.

    `existing` is the snapshot used for the roll number pre-check. It is
    advisory only; the gateway has the final word on duplicates.
    """
    errors = {}

    if _blank(values.get('name')):
        errors['name'] = 'Name is required'

    if mode == 'create':
        roll_number = values.get('roll_number')
        if _blank(roll_number):
            errors['roll_number'] = 'Roll Number is required'
        elif is_roll_number_taken(roll_number, existing):
            errors['roll_number'] = 'Roll Number must be unique'

    if _blank(values.get('student_class')):
        errors['student_class'] = 'Class/Grade required'

    marks_error = validate_marks(values.get('marks'))
    if marks_error:
        errors['marks'] = marks_error

    gender = values.get('gender')
    if gender and gender not in GENDER_CHOICES:
        errors['gender'] = 'Gender must be Female, Male or Other'

    contact = (values.get('contact') or '').strip()
    if contact and not _CONTACT_RE.fullmatch(contact):
        errors['contact'] = 'Contact number is invalid'

    return errors
