"""Tests for the checkout flow: spaces, totals, orders and cart pruning."""
import pytest

from checkout import ORDERS, Payment
from conftest import ART, CHESS, CODING, DRAMA, MUSIC, USER
from errors import InsufficientSpaces, LessonNotFound, LessonUnavailable, OrderNotFound, ValidationError
from schemas import OrderItem

NAME = "Ada Lovelace"
PHONE = "07123456789"


def _items(*pairs):
    return [OrderItem(lesson_id=lesson_id, qty=qty) for lesson_id, qty in pairs]


def test_add_then_checkout_takes_spaces_and_empties_cart(carts, catalog, engine):
    items = carts.add(USER, DRAMA, 3)
    assert len(items) == 1
    assert items[0].qty == 3

    receipt = engine.checkout(USER, NAME, PHONE, _items((DRAMA, 3)))

    assert receipt.total == 60
    assert catalog.get(DRAMA).spaces == 7
    assert carts.items(USER) == []


def test_add_more_than_spaces_is_refused(carts, catalog):
    with pytest.raises(LessonUnavailable):
        carts.add(USER, DRAMA, 11)

    assert catalog.get(DRAMA).spaces == 10
    assert carts.items(USER) == []


def test_checkout_more_than_spaces_fails_and_keeps_spaces(engine, catalog, store):
    with pytest.raises(InsufficientSpaces) as exc:
        engine.checkout(USER, NAME, PHONE, _items((DRAMA, 11)))

    assert exc.value.available == 10
    assert exc.value.requested == 11
    assert catalog.get(DRAMA).spaces == 10
    assert store.count(ORDERS) == 0


def test_total_is_sum_of_price_times_qty(engine, catalog):
    receipt = engine.checkout(USER, NAME, PHONE, _items((ART, 2), (MUSIC, 3), (CHESS, 2)))

    assert receipt.total == 5 * 2 + 15 * 3 + 7.5 * 2
    assert catalog.get(ART).spaces == 8
    assert catalog.get(MUSIC).spaces == 7
    assert catalog.get(CHESS).spaces == 0


def test_later_failure_keeps_earlier_decrements(engine, catalog, store):
    with pytest.raises(InsufficientSpaces):
        engine.checkout(USER, NAME, PHONE, _items((ART, 2), (CHESS, 5)))

    # No compensation: art's spaces stay taken, chess untouched, no order written.
    assert catalog.get(ART).spaces == 8
    assert catalog.get(CHESS).spaces == 2
    assert store.count(ORDERS) == 0


def test_unknown_lesson(engine, store):
    with pytest.raises(LessonNotFound):
        engine.checkout(USER, NAME, PHONE, _items(("not-a-lesson", 1)))
    assert store.count(ORDERS) == 0


@pytest.mark.parametrize(
    "name, phone",
    [
        ("R2D2", PHONE),
        ("", PHONE),
        (NAME, "12345"),
        (NAME, "0712 345 678"),
        (NAME, "\uff10\uff17\uff11\uff12\uff13\uff14\uff15\uff16\uff17\uff18"),  # full-width digits
        ("Ada\u00a0Lovelace", PHONE),  # no-break space
    ],
)
def test_bad_contact_details_fail_before_any_write(engine, catalog, name, phone):
    with pytest.raises(ValidationError):
        engine.checkout(USER, name, phone, _items((DRAMA, 1)))
    assert catalog.get(DRAMA).spaces == 10


def test_empty_order_is_rejected(engine):
    with pytest.raises(ValidationError):
        engine.checkout(USER, NAME, PHONE, [])


def test_online_payment_requires_valid_card(engine, catalog):
    bad = Payment(method="online", card_number="4242", card_name="Ada", expiry_date="12/29", security_code="123")
    with pytest.raises(ValidationError):
        engine.checkout(USER, NAME, PHONE, _items((DRAMA, 1)), bad)
    assert catalog.get(DRAMA).spaces == 10


def test_unknown_payment_method(engine):
    with pytest.raises(ValidationError):
        engine.checkout(USER, NAME, PHONE, _items((DRAMA, 1)), Payment(method="bitcoin"))


def test_online_order_keeps_only_card_name_and_last_four(engine, store):
    card = Payment(
        method="online",
        card_number="4242424242424242",
        card_name="Ada Lovelace",
        expiry_date="12/29",
        security_code="123",
    )
    receipt = engine.checkout(USER, NAME, PHONE, _items((CODING, 1)), card)

    doc = store.get(ORDERS, receipt.order_id)
    assert doc["paymentMethod"] == "online"
    assert doc["cardLast4"] == "4242"
    assert doc["cardName"] == "Ada Lovelace"
    assert "securityCode" not in doc
    assert "cardNumber" not in doc


def test_duplicate_submit_creates_two_orders(engine, catalog):
    first = engine.checkout(USER, NAME, PHONE, _items((DRAMA, 2)))
    second = engine.checkout(USER, NAME, PHONE, _items((DRAMA, 2)))

    assert first.order_id != second.order_id
    assert catalog.get(DRAMA).spaces == 6
    assert len(engine.list_orders(USER)) == 2


def test_checkout_only_prunes_ordered_lessons(carts, engine):
    carts.add(USER, DRAMA, 1)
    carts.add(USER, ART, 2)

    engine.checkout(USER, NAME, PHONE, _items((DRAMA, 1)))

    remaining = carts.items(USER)
    assert [i.lesson_id for i in remaining] == [ART]
    assert remaining[0].qty == 2


def test_spaces_never_go_negative(carts, engine, catalog):
    taken = 0
    while True:
        try:
            carts.add(USER, DRAMA, 3)
            engine.checkout(USER, NAME, PHONE, _items((DRAMA, 3)))
            taken += 3
        except (LessonUnavailable, InsufficientSpaces):
            break
        assert catalog.get(DRAMA).spaces >= 0

    assert taken == 9
    assert catalog.get(DRAMA).spaces == 1


def test_order_record(engine):
    receipt = engine.checkout(USER, NAME, PHONE, _items((DRAMA, 3)))

    order = engine.get_order(USER, receipt.order_id)
    assert order.id == receipt.order_id
    assert order.user_id == USER
    assert order.name == NAME
    assert order.payment_method == "cash"
    assert [(i.lesson_id, i.qty) for i in order.items] == [(DRAMA, 3)]
    assert order.total == 60
    assert order.created_at


def test_orders_are_private_to_their_user(engine):
    receipt = engine.checkout(USER, NAME, PHONE, _items((DRAMA, 1)))

    with pytest.raises(OrderNotFound):
        engine.get_order("someone-else", receipt.order_id)
    assert engine.list_orders("someone-else") == []


def test_orders_listed_newest_first(engine, store):
    for order_id, created in [("o1", "2026-01-01T09:00:00+00:00"), ("o2", "2026-03-01T09:00:00+00:00"),
                              ("o3", "2026-02-01T09:00:00+00:00")]:
        store.insert(ORDERS, {"_id": order_id, "userId": USER, "name": NAME, "phone": PHONE,
                              "items": [{"lessonId": ART, "qty": 1}], "total": 5, "createdAt": created})

    assert [o.id for o in engine.list_orders(USER)] == ["o2", "o3", "o1"]
