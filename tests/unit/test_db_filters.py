"""Tests for filter and sort parsing in db_client."""

import pytest

from src.core.db_client import parse_filter, parse_sort, sanitize_param, split_top_level


@pytest.mark.unit
def test_parse_filter_empty():
    assert parse_filter("") == ("", [])


@pytest.mark.unit
def test_parse_filter_equality_coerces_digits():
    clause, params = parse_filter('id = "12"')

    assert clause == "id = ?"
    assert params == [12]


@pytest.mark.unit
def test_parse_filter_and_conditions():
    clause, params = parse_filter('role = "user" && name ~ "ali"')

    assert clause == "role = ? AND name LIKE ?"
    assert params == ["user", "%ali%"]


@pytest.mark.unit
def test_parse_filter_or_group():
    clause, params = parse_filter('(id = "1" || id = "2")')

    assert clause == "(id = ? OR id = ?)"
    assert params == [1, 2]


@pytest.mark.unit
def test_parse_filter_array_contains_keeps_raw_string():
    clause, params = parse_filter('assigned_to ?= "5"')

    assert clause == "EXISTS (SELECT 1 FROM json_each(assigned_to) WHERE json_each.value = ?)"
    assert params == ["5"]


@pytest.mark.unit
@pytest.mark.parametrize("bad", ['name = value', 'name == "x"', "1=1; DROP TABLE users", 'id = "1" OR 1=1'])
def test_parse_filter_rejects_invalid_syntax(bad: str):
    with pytest.raises(ValueError):
        parse_filter(bad)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("sort", "expected"),
    [
        ("", "id ASC"),
        ("name", "name ASC, id ASC"),
        ("-created", "created DESC, id DESC"),
        ("created desc", "created DESC, id DESC"),
        ("-id", "id DESC"),
        ("name; DROP TABLE users", "id ASC"),
    ],
)
def test_parse_sort(sort: str, expected: str):
    assert parse_sort(sort) == expected


@pytest.mark.unit
def test_sanitize_param_escapes_quotes():
    assert sanitize_param('a"b') == 'a\\"b'


@pytest.mark.unit
def test_parse_filter_accepts_escaped_quotes_and_apostrophes():
    email = "pat.o'neil@example.com"
    name = 'The "Boss"'

    clause, params = parse_filter(f'email = "{sanitize_param(email)}" && name = "{sanitize_param(name)}"')

    assert clause == "email = ? AND name = ?"
    assert params == [email, 'The "Boss"']


@pytest.mark.unit
def test_parse_filter_ignores_operators_inside_values():
    clause, params = parse_filter('(title = "a || b" || title = "c && (d)") && status = "Pending"')

    assert clause == "(title = ? OR title = ?) AND status = ?"
    assert params == ["a || b", "c && (d)", "Pending"]


@pytest.mark.unit
def test_parse_filter_single_quoted_values_use_backslash_escapes():
    assert parse_filter(r"name = 'O\'Brien'") == ("name = ?", ["O'Brien"])


@pytest.mark.unit
def test_split_top_level_keeps_groups_together():
    assert split_top_level('a = "1" && (b = "2" && c = "3")', "&&") == ['a = "1"', '(b = "2" && c = "3")']
