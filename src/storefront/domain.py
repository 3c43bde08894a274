"""Storefront bounded context: the shopper's bag.

Holds the bag aggregate and the machinery that keeps every view of it
(badge, bag panel, checkout) converging on the same contents.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
