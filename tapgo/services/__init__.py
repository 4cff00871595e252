"""
                        Services Module

Server-side business logic over the order store.

Services:
    - order_store: transactional access to the orders table
    - ingestion: cart validation and all-or-nothing batch insert
    - queries: admin/kitchen listing, edits, deletes, statistics
    - menu: static menu document and order ceiling
    - export: Excel export of order lines
"""

from tapgo.services.export import OrderExporter
from tapgo.services.ingestion import OrderIngestionService, SubmitResult
from tapgo.services.menu import MenuService, get_menu_service, reset_menu_service
from tapgo.services.order_store import OrderStore
from tapgo.services.queries import OrderPage, OrderQueryService

__all__ = [
    "OrderExporter",
    "OrderIngestionService",
    "SubmitResult",
    "MenuService",
    "get_menu_service",
    "reset_menu_service",
    "OrderStore",
    "OrderPage",
    "OrderQueryService",
]
