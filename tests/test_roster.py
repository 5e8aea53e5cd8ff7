# tests/test_roster.py

import pytest

from roster import ListQuery, class_options, find_student, search_students


def test_defaults():
    query = ListQuery.from_args({})

    assert query.sort_by == 'name'
    assert query.order == 'asc'
    assert not query.has_filters
    assert query.to_args() == {'sort_by': 'name', 'order': 'asc'}


def test_from_args_parses_filters():
    query = ListQuery.from_args({'sort_by': 'marks', 'order': 'desc', 'class': '10A',
                                 'min_marks': ' 40 ', 'max_marks': ''})

    assert query.sort_by == 'marks'
    assert query.order == 'desc'
    assert query.student_class == '10A'
    assert query.min_marks == 40
    assert query.max_marks is None
    assert query.has_filters


def test_unknown_sort_values_fall_back():
    query = ListQuery.from_args({'sort_by': 'password', 'order': 'sideways'})

    assert (query.sort_by, query.order) == ('name', 'asc')


@pytest.mark.parametrize('value', ['-5', '1e2', '4o', '7.5'])
def test_marks_bound_that_is_not_digits_means_no_bound(value):
    query = ListQuery.from_args({'min_marks': value, 'max_marks': value})

    assert query.min_marks is None
    assert query.max_marks is None
    assert not query.has_filters


def test_toggle_same_column_flips_order():
    query = ListQuery('marks', 'asc')

    assert query.toggle('marks').order == 'desc'
    assert query.toggle('marks').toggle('marks').order == 'asc'


def test_toggle_new_column_sorts_ascending_and_keeps_filters():
    query = ListQuery('marks', 'desc', student_class='9B', min_marks=10)

    toggled = query.toggle('roll_number')

    assert toggled == ListQuery('roll_number', 'asc', student_class='9B', min_marks=10)


def test_cleared_keeps_sort_only():
    query = ListQuery('student_class', 'desc', student_class='9B', min_marks=10, max_marks=90)

    assert query.cleared() == ListQuery('student_class', 'desc')


def test_gateway_params_use_canonical_names():
    params = ListQuery('student_class', 'asc', max_marks=0).gateway_params()

    assert params == {'sort_by': 'student_class', 'order': 'asc', 'student_class': None,
                      'min_marks': None, 'max_marks': 0}


def test_search_matches_name_or_roll_number(sample_students):
    assert [s['id'] for s in search_students(sample_students, 'rao')] == ['1']
    assert [s['id'] for s in search_students(sample_students, 'r00')] == ['1', '2', '3']
    assert [s['id'] for s in search_students(sample_students, ' R003 ')] == ['3']
    assert search_students(sample_students, 'nobody') == []


def test_blank_search_returns_everything(sample_students):
    assert search_students(sample_students, '') == sample_students
    assert search_students(sample_students, None) == sample_students


def test_search_skips_missing_fields():
    students = [{'name': None, 'roll_number': None}, {'name': 'Zoya', 'roll_number': 12}]

    assert search_students(students, '12') == [students[1]]


def test_class_options_are_sorted_and_distinct(sample_students):
    students = sample_students + [{'student_class': ''}, {'student_class': '10A'}]

    assert class_options(students) == ['10A', '10B']


def test_find_student_compares_ids_as_text(sample_students):
    assert find_student(sample_students, 2)['name'] == 'Vikram Shah'
    assert find_student(sample_students, '9') is None
