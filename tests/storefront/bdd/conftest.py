"""Shared BDD fixtures and step definitions for the bag."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from storefront.checkout.review import CheckoutReview
from storefront.observers.badge import BadgeObserver
from storefront.observers.panel import PanelObserver


@pytest.fixture()
def error():
    """Container for capturing exceptions raised in When steps."""
    return {}


@pytest.fixture()
def views():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty bag", target_fixture="bag")
def empty_bag(guest_bag):
    assert len(guest_bag.snapshot()) == 0
    return guest_bag


@given(
    parsers.cfparse('a bag holding product "{product_id}" priced {price:g} with quantity {qty:d}'),
    target_fixture="bag",
)
def bag_holding_product(guest_bag, product_id, price, qty):
    guest_bag.add_item({"id": product_id, "price": price}, qty)
    return guest_bag


@given("the badge and panel are showing")
def badge_and_panel_showing(bag, scheduler, views):
    views["badge"] = BadgeObserver(bag, scheduler).mount()
    views["panel"] = PanelObserver(bag, scheduler).mount()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the bag holds product "{product_id}" with quantity {qty:d} at price {price:g}'))
def bag_holds_product(bag, product_id, qty, price):
    line = bag.snapshot().find(product_id)
    assert line is not None
    assert line.qty == qty
    assert line.price == price


@then(parsers.cfparse("the bag has {count:d} line"))
def bag_has_one_line(bag, count):
    assert len(bag.snapshot()) == count


@then(parsers.cfparse("the bag has {count:d} lines"))
def bag_has_n_lines(bag, count):
    assert len(bag.snapshot()) == count


@then(parsers.cfparse("the bag total is {total:g}"))
def bag_total_is(bag, total):
    assert bag.snapshot().total == total


@then("checkout is blocked for a missing price")
def checkout_blocked_for_price(bag, scheduler, order_service):
    review = CheckoutReview(bag, scheduler, order_service).mount()
    with pytest.raises(ValidationError) as exc:
        review.validate()
    assert "price" in exc.value.messages
    assert order_service.orders == []
