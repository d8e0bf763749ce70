from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from errors import LessonUnavailable, ValidationError
from lessons import LessonCatalog
from schemas import Cart, CartItem
from storage import DocumentStore

logger = logging.getLogger(__name__)

CARTS = "cart"


class CartService:
    """
    One cart per user, stored under the user's id.

    Adding only checks availability; spaces are taken at checkout, so
    removing an item has nothing to give back.
    """

    def __init__(self, store: DocumentStore, lessons: Optional[LessonCatalog] = None):
        self.store = store
        self.lessons = lessons or LessonCatalog(store)

    def _load(self, user_id: str) -> Cart:
        doc = self.store.get(CARTS, user_id)
        if doc is None:
            return Cart(user_id=user_id)
        return Cart.model_validate(doc)

    def _save(self, cart: Cart) -> None:
        self.store.put(CARTS, cart.user_id, cart.model_dump(by_alias=True))

    def items(self, user_id: str) -> List[CartItem]:
        return self._load(user_id).items

    def add(self, user_id: str, lesson_id: str, qty: int) -> List[CartItem]:
        if qty < 1:
            raise ValidationError(f"Quantity for lesson {lesson_id} must be at least 1")
        lesson = self.lessons.find(lesson_id)
        if lesson is None or lesson.spaces < qty:
            raise LessonUnavailable(lesson_id)

        cart = self._load(user_id)
        for item in cart.items:
            if item.lesson_id == lesson_id:
                item.qty += qty
                break
        else:
            cart.items.append(CartItem(lesson_id=lesson_id, subject=lesson.subject, price=lesson.price, qty=qty))
        self._save(cart)
        logger.info("cart user=%s add lesson=%s qty=%s", user_id, lesson_id, qty)
        return cart.items

    def remove(self, user_id: str, lesson_id: str) -> List[CartItem]:
        cart = self._load(user_id)
        kept = [item for item in cart.items if item.lesson_id != lesson_id]
        if len(kept) != len(cart.items):
            cart.items = kept
            self._save(cart)
            logger.info("cart user=%s remove lesson=%s", user_id, lesson_id)
        return kept

    def discard_lessons(self, user_id: str, lesson_ids: Iterable[str]) -> List[CartItem]:
        """Drop every item whose lesson is in lesson_ids (after checkout)."""
        ordered = set(lesson_ids)
        doc = self.store.get(CARTS, user_id)
        if doc is None:
            return []
        cart = Cart.model_validate(doc)
        cart.items = [item for item in cart.items if item.lesson_id not in ordered]
        self._save(cart)
        return cart.items

    def reset(self) -> int:
        removed = self.store.delete_all(CARTS)
        logger.info("Reset cart (%s removed)", removed)
        return removed
