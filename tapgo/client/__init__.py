"""
Client Module

Client-side models that talk to the ordering API over HTTP:
    - api: typed httpx client
    - cart: customer cart with local persistence and ceiling check
    - kitchen: polling kitchen display
    - admin: back-office search/edit/delete console
"""

from tapgo.client.admin import AdminConsole
from tapgo.client.api import ApiUnavailableError, TapGoClient
from tapgo.client.cart import CartLine, CartModel, CartStorage
from tapgo.client.kitchen import KitchenDisplay, KitchenSummary, SortDirection, SortField

__all__ = [
    "AdminConsole",
    "ApiUnavailableError",
    "TapGoClient",
    "CartLine",
    "CartModel",
    "CartStorage",
    "KitchenDisplay",
    "KitchenSummary",
    "SortDirection",
    "SortField",
]
