import pytest

from conftest import ART, CHESS, CODING, DRAMA, HISTORY
from errors import LessonNotFound, ValidationError
from lessons import number_text, sort_lessons
from schemas import Lesson


def _lesson(id, subject, location="R 1", price=1, spaces=1):
    return Lesson(id=id, subject=subject, location=location, price=price, spaces=spaces)


def test_list_sorted_by_subject(catalog):
    subjects = [l.subject for l in catalog.list()]
    assert subjects == sorted(subjects)
    assert subjects[0] == "art"
    assert len(subjects) == 11


def test_list_descending(catalog):
    assert catalog.list("subject", descending=True)[0].subject == "sports"


def test_get(catalog):
    lesson = catalog.get(DRAMA)
    assert lesson.subject == "drama"
    assert lesson.price == 20
    assert lesson.spaces == 10


def test_get_missing(catalog):
    with pytest.raises(LessonNotFound):
        catalog.get("nope")
    assert catalog.find("nope") is None


@pytest.mark.parametrize(
    "q, expected",
    [
        ("ART", [ART]),
        ("b 07", [CODING]),
        ("7.5", [CHESS]),
    ],
)
def test_search(catalog, q, expected):
    assert [l.id for l in catalog.search(q)] == expected


def test_search_matches_number_text(catalog):
    # spaces 10 on every sample lesson, the extra chess lesson has 2
    hits = catalog.search("10")
    assert len(hits) == 10
    assert CHESS not in [l.id for l in hits]


def test_empty_search_returns_nothing(catalog):
    assert catalog.search("") == []


def test_space_is_searched_like_any_text(catalog):
    # every location is "<letter> <number>"
    assert len(catalog.search(" ")) == 11


def test_number_text():
    assert number_text(5.0) == "5"
    assert number_text(7.5) == "7.5"
    assert number_text(10) == "10"


def test_text_sort_is_case_insensitive():
    lessons = [_lesson("1", "banana"), _lesson("2", "Apple"), _lesson("3", "cherry")]
    assert [l.subject for l in sort_lessons(lessons, "subject")] == ["Apple", "banana", "cherry"]


def test_number_sort_is_stable_both_ways(catalog):
    by_price = sort_lessons(catalog.all(), "price")
    assert [l.id for l in by_price[:2]] == [ART, HISTORY]

    by_price_desc = sort_lessons(catalog.all(), "price", descending=True)
    assert [l.id for l in by_price_desc[-2:]] == [ART, HISTORY]


def test_sort_by_spaces(catalog):
    assert sort_lessons(catalog.all(), "spaces")[0].id == CHESS


def test_unknown_sort_key():
    with pytest.raises(ValidationError):
        sort_lessons([], "room")


def test_reset_spaces(catalog, store):
    store.update("lesson", DRAMA, inc={"spaces": -7})

    assert catalog.reset_spaces(10) == 11
    assert all(l.spaces == 10 for l in catalog.all())

    with pytest.raises(ValidationError):
        catalog.reset_spaces(-1)
