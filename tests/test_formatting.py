import pytest

from app.services.formatting import format_number, rating_percent


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, "0"),
        (None, "0"),
        (999, "999"),
        (1_000, "1.0K"),
        (1_540, "1.5K"),
        (2_500_000, "2.5M"),
        (3_200_000_000, "3.2B"),
        ("oops", "0"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_rating_percent():
    assert rating_percent(90, 10) == 90
    assert rating_percent(2, 1) == 67
    assert rating_percent(0, 0) is None
