"""Resource APIs wired to the intercom bus."""

from .events import ProductEvents
from .product import PRIVILEGE_MESSAGE, ProductAPI, RouteOptions

__all__ = ["PRIVILEGE_MESSAGE", "ProductAPI", "ProductEvents", "RouteOptions"]
