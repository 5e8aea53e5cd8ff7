import re
from typing import Dict, List, Optional

from models import SORT_FIELDS

ORDERS = ('asc', 'desc')

_DIGITS_RE = re.compile(r'[0-9]+')


def _marks_bound(value) -> Optional[int]:
    """A marks filter box holding anything but digits means no bound."""
    if value is None:
        return None
    text = str(value).strip()
    return int(text) if _DIGITS_RE.fullmatch(text) else None


class ListQuery:
    """
    Sort and filter settings for the student list.

    Sort keys use the gateway's canonical names: name, roll_number,
    student_class and marks.
    """

    def __init__(self, sort_by: str = 'name', order: str = 'asc', student_class: str = '',
                 min_marks: Optional[int] = None, max_marks: Optional[int] = None):
        self.sort_by = sort_by if sort_by in SORT_FIELDS else 'name'
        self.order = order if order in ORDERS else 'asc'
        self.student_class = student_class or ''
        self.min_marks = min_marks
        self.max_marks = max_marks

    @classmethod
    def from_args(cls, args) -> 'ListQuery':
        return cls(
            sort_by=args.get('sort_by', 'name'),
            order=args.get('order', 'asc'),
            student_class=args.get('class', ''),
            min_marks=_marks_bound(args.get('min_marks')),
            max_marks=_marks_bound(args.get('max_marks')),
        )

    @property
    def has_filters(self) -> bool:
        return bool(self.student_class) or self.min_marks is not None or self.max_marks is not None

    def toggle(self, column: str) -> 'ListQuery':
        """Header click: same column flips the order, a new column sorts ascending."""
        if column == self.sort_by:
            order = 'desc' if self.order == 'asc' else 'asc'
        else:
            order = 'asc'
        return ListQuery(column, order, self.student_class, self.min_marks, self.max_marks)

    def cleared(self) -> 'ListQuery':
        return ListQuery(self.sort_by, self.order)

    def gateway_params(self) -> Dict:
        return {
            'sort_by': self.sort_by,
            'order': self.order,
            'student_class': self.student_class or None,
            'min_marks': self.min_marks,
            'max_marks': self.max_marks,
        }

    def to_args(self) -> Dict:
        """Query string arguments for url_for, without empty filters."""
        args = {'sort_by': self.sort_by, 'order': self.order}
        if self.student_class:
            args['class'] = self.student_class
        if self.min_marks is not None:
            args['min_marks'] = self.min_marks
        if self.max_marks is not None:
            args['max_marks'] = self.max_marks
        return args

    def __eq__(self, other):
        if not isinstance(other, ListQuery):
            return NotImplemented
        return self.to_args() == other.to_args()

    def __repr__(self):
        return f"ListQuery({self.to_args()})"


def search_students(students: List[Dict], text: Optional[str]) -> List[Dict]:
    """Case-insensitive substring match on name or roll number."""
    needle = (text or '').strip().lower()
    if not needle:
        return list(students)

    matches = []
    for student in students:
        name = student.get('name')
        roll_number = student.get('roll_number')
        if (name and needle in str(name).lower()) or \
                (roll_number is not None and needle in str(roll_number).lower()):
            matches.append(student)
    return matches


def class_options(students: List[Dict]) -> List[str]:
    """Distinct, non-empty classes for the filter dropdown"""
    classes = list(set([s['student_class'] for s in students if str(s.get('student_class') or '').strip()]))
    classes.sort()
    return classes


def find_student(students: List[Dict], student_id) -> Optional[Dict]:
    return next((s for s in students if str(s.get('id')) == str(student_id)), None)
