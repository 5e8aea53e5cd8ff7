"""
Summary statistics over a list of student records.

Everything here is derived from whatever list the caller fetched last;
nothing talks to the gateway.
"""

from typing import Dict, List, Optional, Tuple

from validation import parse_marks

HISTOGRAM_LABELS = ['0-19', '20-39', '40-59', '60-79', '80-100']
BUCKET_WIDTH = 20


def _scored(students: List[Dict]) -> List[Tuple[Dict, float]]:
    """Pair each record with its parsed marks, dropping unparseable ones."""
    scored = []
    for student in students:
        parsed = parse_marks(student.get('marks'))
        if parsed.ok:
            scored.append((student, parsed.value))
    return scored


def _extremes(scored: List[Tuple[Dict, float]]) -> Tuple[Optional[Dict], Optional[Dict]]:
    # Strict comparisons keep the first record seen on ties
    highest = lowest = None
    high_mark = low_mark = None
    for student, mark in scored:
        if high_mark is None or mark > high_mark:
            highest, high_mark = student, mark
        if low_mark is None or mark < low_mark:
            lowest, low_mark = student, mark
    return highest, lowest


def _average(scored: List[Tuple[Dict, float]]) -> float:
    if not scored:
        return 0
    return sum(mark for _, mark in scored) / len(scored)


def bucket_index(mark: float) -> int:
    """
    Bucket for a mark: [0,20) [20,40) [40,60) [60,80) [80,100].
    Values outside 0-100 are clamped to the first or last bucket.
    """
    index = int(mark // BUCKET_WIDTH)
    return max(0, min(index, len(HISTOGRAM_LABELS) - 1))


def histogram(students: List[Dict]) -> List[Tuple[str, int]]:
    counts = [0] * len(HISTOGRAM_LABELS)
    for _, mark in _scored(students):
        counts[bucket_index(mark)] += 1
    return list(zip(HISTOGRAM_LABELS, counts))


def class_breakdown(students: List[Dict]) -> List[Dict]:
    """
    Per-class count, average, highest and lowest, sorted by class label.
    Records without a class are skipped. Grouping is exact and case-sensitive.
    """
    groups: Dict[str, List[Dict]] = {}
    for student in students:
        student_class = student.get('student_class')
        if not student_class or not str(student_class).strip():
            continue
        groups.setdefault(student_class, []).append(student)

    breakdown = []
    for student_class in sorted(groups):
        members = groups[student_class]
        scored = _scored(members)
        highest, lowest = _extremes(scored)
        breakdown.append({
            'student_class': student_class,
            'count': len(members),
            'average': _average(scored),
            'highest': highest,
            'lowest': lowest,
        })
    return breakdown


def summarize(students: Optional[List[Dict]]) -> Dict:
    """
    Build the full analytics summary.

    Returns a dict with total, average, highest, lowest, classes and
    histogram. Records whose marks do not parse still count towards total
    (and towards their class count) but take no part in averages, extremes
    or the histogram.
    """
    students = list(students or [])
    scored = _scored(students)
    highest, lowest = _extremes(scored)

    return {
        'total': len(students),
        'average': _average(scored),
        'highest': highest,
        'lowest': lowest,
        'classes': class_breakdown(students),
        'histogram': histogram(students),
    }


def class_average_bars(summary: Dict) -> List[Tuple[str, float, float]]:
    """Rows of (class, average, bar width %) for the per-class bar chart."""
    classes = summary.get('classes') or []
    scale = max([entry['average'] for entry in classes] + [100])
    return [
        (entry['student_class'], entry['average'], entry['average'] / scale * 100)
        for entry in classes
    ]


def histogram_bars(summary: Dict) -> List[Tuple[str, int, float]]:
    """Rows of (label, count, bar height %) for the marks histogram."""
    buckets = summary.get('histogram') or []
    peak = max([count for _, count in buckets] + [1])
    return [(label, count, count / peak * 100) for label, count in buckets]
