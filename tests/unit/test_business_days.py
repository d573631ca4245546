from datetime import date

import pytest

from mentorhub.utils.business_days import business_days_between, expand_days, is_weekend, iter_days

MONDAY = date(2026, 3, 2)
SUNDAY = date(2026, 3, 8)


def test_iter_days_is_inclusive():
    days = list(iter_days(MONDAY, SUNDAY))
    assert len(days) == 7
    assert days[0] == MONDAY
    assert days[-1] == SUNDAY


def test_iter_days_single_day():
    assert list(iter_days(MONDAY, MONDAY)) == [MONDAY]


def test_iter_days_rejects_inverted_range():
    with pytest.raises(ValueError):
        list(iter_days(SUNDAY, MONDAY))


def test_expand_days_excludes_default_weekend():
    days = expand_days(MONDAY, SUNDAY)
    assert [d.weekday() for d in days] == [0, 1, 2, 3, 4]


def test_expand_days_custom_weekend():
    days = expand_days(MONDAY, SUNDAY, weekend_days={4, 5})
    assert [d.weekday() for d in days] == [0, 1, 2, 3, 6]


def test_expand_days_keeping_weekends():
    assert len(expand_days(MONDAY, SUNDAY, exclude_weekends=False)) == 7


def test_is_weekend():
    assert is_weekend(date(2026, 3, 7)) is True
    assert is_weekend(MONDAY) is False


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (MONDAY, SUNDAY, 5),
        (MONDAY, date(2026, 3, 15), 10),
        (date(2026, 3, 7), date(2026, 3, 8), 0),
        (date(2026, 2, 27), date(2026, 3, 2), 2),
    ],
)
def test_business_days_between(start, end, expected):
    assert business_days_between(start, end) == expected
