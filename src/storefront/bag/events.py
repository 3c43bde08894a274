"""Domain events for the Bag aggregate."""

from protean.fields import Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Bag")
class BagItemAdded:
    """A product was added to the bag (or its line grew)."""

    __version__ = "v1"

    bag_id = Identifier(required=True)
    product_id = Identifier(required=True)
    title = String(max_length=500)
    price = Float(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@storefront.event(part_of="Bag")
class BagQuantityUpdated:
    """A bag line's quantity was replaced."""

    __version__ = "v1"

    bag_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Bag")
class BagItemRemoved:
    """A line was removed from the bag."""

    __version__ = "v1"

    bag_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Bag")
class BagCleared:
    """Every line was dropped from the bag."""

    __version__ = "v1"

    bag_id = Identifier(required=True)
    items_removed_count = Integer(required=True)


@storefront.event(part_of="Bag")
class BagHydrated:
    """The bag was seeded from a previously mirrored snapshot."""

    __version__ = "v1"

    bag_id = Identifier(required=True)
    items_restored_count = Integer(required=True)
