from __future__ import annotations

import logging
from typing import Iterable, List

from errors import LessonNotFound, ValidationError
from schemas import Lesson
from storage import DocumentStore

logger = logging.getLogger(__name__)

LESSONS = "lesson"

TEXT_KEYS = ("subject", "location")
NUMBER_KEYS = ("price", "spaces")
SORT_KEYS = TEXT_KEYS + NUMBER_KEYS


def number_text(value: float) -> str:
    """Decimal text of a number the way the client shows it: 5.0 -> "5", 7.5 -> "7.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def sort_lessons(lessons: Iterable[Lesson], key: str = "subject", descending: bool = False) -> List[Lesson]:
    """
    Stable sort on one attribute. Text attributes compare case-folded,
    numbers compare raw. Ties keep their incoming order in both directions.
    """
    if key not in SORT_KEYS:
        raise ValidationError(f"Cannot sort by {key!r}; expected one of {', '.join(SORT_KEYS)}")
    if key in TEXT_KEYS:
        return sorted(lessons, key=lambda l: getattr(l, key).casefold(), reverse=descending)
    return sorted(lessons, key=lambda l: getattr(l, key), reverse=descending)


def matches(lesson: Lesson, q: str) -> bool:
    needle = q.lower()
    return (
        needle in lesson.subject.lower()
        or needle in lesson.location.lower()
        or q in number_text(lesson.price)
        or q in number_text(lesson.spaces)
    )


class LessonCatalog:
    def __init__(self, store: DocumentStore):
        self.store = store

    def all(self) -> List[Lesson]:
        return [Lesson.model_validate(d) for d in self.store.find(LESSONS)]

    def list(self, sort: str = "subject", descending: bool = False) -> List[Lesson]:
        return sort_lessons(self.all(), sort, descending)

    def get(self, lesson_id: str) -> Lesson:
        doc = self.store.get(LESSONS, lesson_id)
        if doc is None:
            raise LessonNotFound(lesson_id)
        return Lesson.model_validate(doc)

    def find(self, lesson_id: str):
        """Like get() but returns None for a missing lesson."""
        doc = self.store.get(LESSONS, lesson_id)
        return Lesson.model_validate(doc) if doc is not None else None

    def search(self, q: str) -> List[Lesson]:
        if not q:
            return []
        return [l for l in self.all() if matches(l, q)]

    def take_spaces(self, lesson_id: str, qty: int) -> None:
        self.store.update(LESSONS, lesson_id, inc={"spaces": -qty})

    def reset_spaces(self, spaces: int) -> int:
        if spaces < 0:
            raise ValidationError("spaces must be >= 0")
        count = self.store.update_all(LESSONS, {"spaces": spaces})
        logger.info("Reset spaces to %s for %s lessons", spaces, count)
        return count
