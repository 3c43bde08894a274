from storefront.api.routes import bag_router, checkout_router, register_error_handlers

__all__ = ["bag_router", "checkout_router", "register_error_handlers"]
