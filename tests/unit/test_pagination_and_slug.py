import pytest

from inkwell.utils.pagination import MAX_LIMIT, Pagination, parse_pagination
from inkwell.utils.slug import slugify


@pytest.mark.parametrize(
    "page,limit,expected",
    [
        (None, None, Pagination(1, 10)),
        ("3", "25", Pagination(3, 25)),
        ("0", "-5", Pagination(1, 10)),
        ("abc", "1000", Pagination(1, MAX_LIMIT)),
        (2, 100, Pagination(2, 100)),
    ],
)
def test_parse_pagination(page, limit, expected):
    assert parse_pagination(page, limit) == expected


def test_offset_and_meta():
    pagination = Pagination(page=3, limit=10)
    assert pagination.offset == 20
    assert pagination.meta(41) == {"page": 3, "limit": 10, "total": 41, "total_pages": 5}
    assert pagination.meta(0)["total_pages"] == 0


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Hello, World!", "hello-world"),
        ("  Crème brûlée  recipes ", "creme-brulee-recipes"),
        ("snake_case and--dashes", "snake-case-and-dashes"),
        ("!!!", ""),
    ],
)
def test_slugify(value, expected):
    assert slugify(value) == expected


def test_slugify_truncates_without_trailing_dash():
    assert slugify("ab cd", max_length=3) == "ab"
