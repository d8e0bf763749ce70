"""
Checkout: turns a list of (lesson, qty) into an order.

The steps run in a fixed order and nothing is compensated:
    1. validate name, phone, payment details and items (no writes yet)
    2. per item: look up lesson, check spaces, add to total, take spaces
    3. append the order
    4. drop the ordered lessons from the buyer's cart

A lesson missing or short of spaces half way through the item list leaves
the earlier items' spaces taken. A repeated submit creates a second order.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from cart import CartService
from errors import InsufficientSpaces, LessonNotFound, OrderNotFound, ValidationError
from lessons import LessonCatalog
from schemas import Order, OrderItem
from storage import DocumentStore

logger = logging.getLogger(__name__)

ORDERS = "order"

NAME_RE = re.compile(r"[a-zA-Z\s]+", re.ASCII)
PHONE_RE = re.compile(r"\d{10,}", re.ASCII)
CARD_NUMBER_RE = re.compile(r"\d{16}", re.ASCII)
EXPIRY_RE = re.compile(r"\d{2}/\d{2}", re.ASCII)
SECURITY_CODE_RE = re.compile(r"\d{3}", re.ASCII)

PAYMENT_METHODS = ("cash", "online")


@dataclass(slots=True)
class Payment:
    """Card fields as typed by the buyer. Checked for format, never charged."""

    method: str = "cash"
    card_number: Optional[str] = None
    card_name: Optional[str] = None
    expiry_date: Optional[str] = None
    security_code: Optional[str] = None


@dataclass(slots=True)
class OrderReceipt:
    order_id: str
    total: float


def _full(pattern: re.Pattern, value: Optional[str]) -> bool:
    return value is not None and pattern.fullmatch(value) is not None


def validate_contact(name: str, phone: str) -> None:
    if not _full(NAME_RE, name) or not _full(PHONE_RE, phone):
        raise ValidationError("Invalid name or phone (phone must be at least 10 digits)")


def validate_payment(payment: Payment) -> None:
    if payment.method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method {payment.method!r}")
    if payment.method != "online":
        return
    if not (
        _full(CARD_NUMBER_RE, payment.card_number)
        and _full(NAME_RE, payment.card_name)
        and _full(EXPIRY_RE, payment.expiry_date)
        and _full(SECURITY_CODE_RE, payment.security_code)
    ):
        raise ValidationError("Invalid card details")


def validate_items(items: Sequence[OrderItem]) -> None:
    if not items:
        raise ValidationError("Order must contain at least one lesson")
    for item in items:
        if item.qty < 1:
            raise ValidationError(f"Quantity for lesson {item.lesson_id} must be at least 1")


class CheckoutEngine:
    def __init__(self, store: DocumentStore, lessons: Optional[LessonCatalog] = None, carts: Optional[CartService] = None):
        self.store = store
        self.lessons = lessons or LessonCatalog(store)
        self.carts = carts or CartService(store, self.lessons)

    def checkout(
        self,
        user_id: str,
        name: str,
        phone: str,
        items: Sequence[OrderItem],
        payment: Optional[Payment] = None,
    ) -> OrderReceipt:
        payment = payment or Payment()
        validate_contact(name, phone)
        validate_payment(payment)
        validate_items(items)

        logger.info("checkout user=%s items=%s", user_id, len(items))
        total = 0.0
        for item in items:
            lesson = self.lessons.find(item.lesson_id)
            if lesson is None:
                raise LessonNotFound(item.lesson_id)
            if lesson.spaces < item.qty:
                raise InsufficientSpaces(item.lesson_id, lesson.spaces, item.qty)
            total += lesson.price * item.qty
            self.lessons.take_spaces(item.lesson_id, item.qty)
            logger.info(
                "checkout user=%s took lesson=%s qty=%s (spaces=%s)",
                user_id, item.lesson_id, item.qty, lesson.spaces - item.qty,
            )

        order = Order(
            user_id=user_id,
            name=name,
            phone=phone,
            payment_method=payment.method,
            items=[OrderItem(lesson_id=i.lesson_id, qty=i.qty) for i in items],
            total=total,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        if payment.method == "online":
            order.card_name = payment.card_name
            order.card_last4 = payment.card_number[-4:]
        order_id = self.store.create_document(ORDERS, order)

        self.carts.discard_lessons(user_id, [i.lesson_id for i in items])
        logger.info("checkout user=%s order=%s total=%s", user_id, order_id, total)
        return OrderReceipt(order_id=order_id, total=total)

    def list_orders(self, user_id: str) -> List[Order]:
        orders = [Order.model_validate(d) for d in self.store.find(ORDERS, {"userId": user_id})]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def get_order(self, user_id: str, order_id: str) -> Order:
        doc = self.store.get(ORDERS, order_id)
        if doc is None or doc.get("userId") != user_id:
            raise OrderNotFound(order_id)
        return Order.model_validate(doc)
