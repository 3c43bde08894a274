"""Tests for checkout: frozen review, promo codes, validation and order placement."""

import pytest
from protean.exceptions import ValidationError

from storefront.bag.sources import open_account_bag
from storefront.checkout.review import CheckoutReview, PromoOffer, order_product_id
from storefront.observers.base import ObserverState
from storefront.remote.port import GuestDetails, OrderServiceError

APPLE = {"id": "p1", "title": "Apple", "price": 40}
BANANA = {"id": "p2", "title": "Banana", "price": 10}

OFFERS = (
    PromoOffer(code="SAVE10", type="percent", value=10),
    PromoOffer(code="FLAT50", type="flat", value=50),
)

GUEST = GuestDetails(
    name="Asha",
    phone="9800000000",
    address_line="12 Market Road",
    city="Sivakasi",
    state="TN",
    pincode="626123",
)


@pytest.fixture()
def review(guest_bag, scheduler, order_service):
    return CheckoutReview(guest_bag, scheduler, order_service, offers=OFFERS)


class TestPromoOffer:
    def test_percent(self):
        assert PromoOffer(code="X", type="percent", value=10).discount_for(200.0) == 20.0

    def test_flat(self):
        assert PromoOffer(code="X", type="flat", value=50).discount_for(200.0) == 50.0

    def test_never_negative(self):
        assert PromoOffer(code="X", type="flat", value=-5).discount_for(200.0) == 0.0


class TestOrderProductId:
    @pytest.mark.parametrize("raw, expected", [("42", 42), ("7.0", 7), ("svc-1", "svc-1"), ("4.5", "4.5")])
    def test_conversion(self, raw, expected):
        assert order_product_id(raw) == expected


class TestFrozenReview:
    def test_mount_reads_bag_once(self, guest_bag, review):
        guest_bag.add_item(APPLE, 2)
        review.mount()
        assert review.subtotal == 80.0
        assert review.state == ObserverState.READY

    def test_does_not_follow_later_changes(self, guest_bag, review):
        guest_bag.add_item(APPLE, 2)
        review.mount()
        guest_bag.add_item(BANANA, 1)
        assert review.subtotal == 80.0

    def test_read_now(self, guest_bag, review):
        guest_bag.add_item(BANANA, 3)
        assert review.read_now().subtotal == 30.0


class TestPromoCodes:
    def test_percent_code(self, guest_bag, review):
        guest_bag.add_item(APPLE, 5)
        review.mount()
        assert review.apply_promo("save10") == 20.0
        assert review.promo_code == "SAVE10"
        assert review.total == 180.0

    def test_flat_code_cannot_push_total_below_zero(self, guest_bag, review):
        guest_bag.add_item(BANANA, 1)
        review.mount()
        review.apply_promo(" FLAT50 ")
        assert review.total == 0.0

    def test_invalid_code_resets_discount(self, guest_bag, review):
        guest_bag.add_item(APPLE, 5)
        review.mount()
        review.apply_promo("SAVE10")

        with pytest.raises(ValidationError) as exc:
            review.apply_promo("BOGUS")

        assert exc.value.messages == {"promo_code": ["Invalid promo code. Please try again."]}
        assert review.discount == 0.0
        assert review.promo_code is None
        assert review.total == 200.0


class TestValidate:
    def test_empty_bag(self, review):
        review.mount()
        with pytest.raises(ValidationError) as exc:
            review.validate()
        assert "bag" in exc.value.messages

    def test_unpriced_line_blocks_order(self, guest_bag, review):
        guest_bag.add_item(APPLE, 1)
        guest_bag.add_item({"id": "p3", "title": "Mystery box", "price": "abc"}, 1)
        review.mount()

        with pytest.raises(ValidationError) as exc:
            review.validate()

        assert "Mystery box" in exc.value.messages["price"][0]

    def test_priced_bag_passes(self, guest_bag, review):
        guest_bag.add_item(APPLE, 1)
        review.mount()
        review.validate()


class TestBuildRequest:
    def test_guest_request_carries_every_line(self, guest_bag, review):
        guest_bag.add_item({"id": "42", "title": "Apple", "price": 40}, 2)
        guest_bag.add_item({"_id": "svc-9", "title": "Delivery", "price": 15}, 1)
        review.mount()

        request = review.build_request(guest=GUEST)

        assert request.is_guest
        assert [(line.product_id, line.qty) for line in request.lines] == [(42, 2), ("svc-9", 1)]
        assert request.total == 95.0

    def test_guest_with_missing_phone_is_rejected(self, guest_bag, review):
        guest_bag.add_item(APPLE, 1)
        review.mount()
        incomplete = GuestDetails(name="Asha", phone=" ", address_line="12 Market Road")

        with pytest.raises(ValidationError) as exc:
            review.build_request(guest=incomplete)

        assert "guest" in exc.value.messages

    def test_account_without_address_is_rejected(self, guest_bag, review):
        guest_bag.add_item(APPLE, 1)
        review.mount()
        with pytest.raises(ValidationError) as exc:
            review.build_request()
        assert "address" in exc.value.messages

    def test_account_request(self, guest_bag, review):
        guest_bag.add_item(APPLE, 1)
        review.mount()
        request = review.build_request(address_id="addr-1")
        assert request.is_guest is False
        assert request.address_id == "addr-1"

    def test_request_carries_promo(self, guest_bag, review):
        guest_bag.add_item(APPLE, 5)
        review.mount()
        review.apply_promo("SAVE10")
        request = review.build_request(address_id="addr-1")
        assert request.promo_code == "SAVE10"
        assert request.discount == 20.0
        assert request.total == 180.0


class TestPlaceOrder:
    def test_creates_order_and_empties_bag(self, guest_bag, slot, review, order_service):
        guest_bag.add_item(APPLE, 2)
        review.mount()

        receipt = review.place_order(guest=GUEST)

        assert receipt.order_id.startswith("fake_order_")
        assert len(order_service.orders) == 1
        assert len(guest_bag.snapshot()) == 0
        assert slot.read() is None

    def test_validation_failure_sends_nothing(self, review, order_service):
        review.mount()
        with pytest.raises(ValidationError):
            review.place_order(guest=GUEST)
        assert order_service.orders == []

    def test_backend_failure_keeps_bag(self, guest_bag, review, order_service):
        guest_bag.add_item(APPLE, 2)
        review.mount()
        order_service.configure(should_succeed=False, failure_reason="Server error. Please try again later.")

        with pytest.raises(OrderServiceError):
            review.place_order(address_id="addr-1")

        assert guest_bag.snapshot().find("p1").qty == 2

    def test_account_checkout_empties_remote_bag(self, bus, scheduler, order_service):
        source = open_account_bag(order_service, bus)
        source.add_item(APPLE, 1)
        review = CheckoutReview(source, scheduler, order_service).mount()
        scheduler.run_jobs()

        review.place_order(address_id="addr-1")

        assert order_service.bag == []
        assert order_service.orders[0].address_id == "addr-1"


class TestGuestDetails:
    def test_formatted_address(self):
        assert GUEST.formatted_address() == "12 Market Road, Sivakasi, TN - 626123"

    def test_formatted_address_without_optional_parts(self):
        assert GuestDetails(name="A", phone="1", address_line="Main St").formatted_address() == "Main St"
