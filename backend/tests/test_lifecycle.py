# tests/test_lifecycle.py — Status and rating parsing
import pytest

from errors import ValidationError
from lifecycle import parse_status, parse_rating, normalize_looking_for, VALID_STATUSES, INITIAL_STATUS
from models import SubmissionStatus


def test_initial_status_is_new():
    assert INITIAL_STATUS == SubmissionStatus.NEW


@pytest.mark.parametrize("value", VALID_STATUSES)
def test_every_valid_status_parses(value):
    assert parse_status(value).value == value


@pytest.mark.parametrize("value", ["", "rejected", "APPROVED", None, 3])
def test_invalid_status_rejected(value):
    with pytest.raises(ValidationError):
        parse_status(value)


@pytest.mark.parametrize("value", [1, 2, 3, 4, 5, 4.0])
def test_valid_ratings(value):
    assert parse_rating(value) == int(value)


@pytest.mark.parametrize("value", [0, 6, -1, 4.5, "4", None, True, [3], float("inf"), float("-inf"), float("nan")])
def test_invalid_ratings(value):
    with pytest.raises(ValidationError):
        parse_rating(value)


def test_looking_for_keeps_order():
    assert normalize_looking_for(["Investment", "Mentorship"]) == ["Investment", "Mentorship"]
    assert normalize_looking_for("Investment, Mentorship,,") == ["Investment", "Mentorship"]
    assert normalize_looking_for(None) == []
