# Student records live in the remote record gateway.
# This module only describes the shape the rest of the app works with:
# plain dicts keyed by the gateway's wire names.

from typing import Dict, Optional

STUDENT_FIELDS = ('id', 'name', 'roll_number', 'student_class', 'marks', 'gender', 'contact')

GENDER_CHOICES = ('Female', 'Male', 'Other')

# Columns the list view can sort on, in display order
SORT_FIELDS = ('name', 'roll_number', 'student_class', 'marks')

SORT_LABELS = {
    'name': 'Name',
    'roll_number': 'Roll Number',
    'student_class': 'Class',
    'marks': 'Marks',
}


def normalize_student(raw: Optional[Dict]) -> Dict:
    """
    Map a gateway record to a dict carrying every student field.
    Missing or blank optional values become None.
    """
    raw = raw or {}
    student = {field: raw.get(field) for field in STUDENT_FIELDS}

    for field in ('gender', 'contact'):
        if student[field] == '':
            student[field] = None

    if student['roll_number'] is not None:
        student['roll_number'] = str(student['roll_number'])

    return student


def display_label(student: Optional[Dict]) -> str:
    """Name (marks) label used for scorer cards and tables."""
    if not student:
        return '-'
    return f"{student.get('name') or '-'} ({student.get('marks')})"
