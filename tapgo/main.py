"""
FastAPI Application Entry Point

TapGo Ordering - customer checkout, kitchen feed and admin console API.

Endpoints (under API_PREFIX, default /api):
    - POST   /orders: Submit a cart
    - GET    /orders: All order lines (kitchen display)
    - GET    /admin/orders: Filtered, paginated order lines
    - GET    /admin/orders/export: Excel export of filtered order lines
    - GET    /admin/orders/{id}: Single order line
    - PUT    /admin/orders/{id}: Edit an order line
    - DELETE /admin/orders/{id}: Delete an order line
    - GET    /admin/statistics: Dashboard statistics
    - GET    /menu: Menu document and order ceiling
    - GET    /health: System health check (no prefix)

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from tapgo.core.config import get_settings, setup_logging
from tapgo.core.exceptions import StoreError, TapGoError, ValidationError
from tapgo.database import engine, get_db, init_db
from tapgo.schemas import (
    ErrorResponse,
    HealthResponse,
    MenuResponse,
    MessageResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderDetailResponse,
    OrderLineOut,
    OrderListResponse,
    OrderPageResponse,
    OrderUpdate,
    Pagination,
    StatisticsResponse,
    describe_errors,
)
from tapgo.services.export import XLSX_MEDIA_TYPE, OrderExporter
from tapgo.services.ingestion import OrderIngestionService
from tapgo.services.menu import MenuService, get_menu_service
from tapgo.services.queries import OrderQueryService

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    menu = get_menu_service()
    try:
        menu.load()
        logger.info(f"✅ Menu: {menu.path} (order ceiling {menu.order_ceiling})")
    except TapGoError as e:
        logger.warning(f"⚠️ Menu not loaded: {e.message}")

    if settings.enforce_order_ceiling:
        logger.info("✅ Order ceiling enforced server-side")

    logger.info("✅ Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Restaurant ordering API: checkout, kitchen feed and admin console.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix=settings.api_prefix)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_query_service(db: AsyncSession = Depends(get_db)) -> OrderQueryService:
    return OrderQueryService(db, settings)


def get_ingestion_service(
    db: AsyncSession = Depends(get_db),
    menu: MenuService = Depends(get_menu_service),
) -> OrderIngestionService:
    if not settings.enforce_order_ceiling:
        return OrderIngestionService(db)
    return OrderIngestionService(
        db,
        ceiling=menu.order_ceiling,
        ceiling_message=menu.ceiling_message,
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Verify the database is reachable."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.post(
    "/orders",
    status_code=201,
    response_model=OrderCreateResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Submit Cart",
)
async def create_order(
    order_data: OrderCreate,
    service: OrderIngestionService = Depends(get_ingestion_service),
) -> OrderCreateResponse:
    """
    Store a cart as one order line per item.

    The whole cart is written in one transaction; on failure nothing is kept.
    """
    logger.info(f"Creating order for: {order_data.customer_name} ({len(order_data.items)} items)")

    result = await service.submit_cart(order_data)

    return OrderCreateResponse(
        message="Order placed successfully",
        order_id=result.order_reference_id,
        total_amount=result.total_amount,
        item_count=result.item_count,
    )


@router.get(
    "/orders",
    response_model=OrderListResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="List All Order Lines",
)
async def list_orders(
    service: OrderQueryService = Depends(get_query_service),
) -> OrderListResponse:
    """Every order line, newest first. Polled by the kitchen display."""
    rows = await service.list_all()
    return OrderListResponse(orders=[OrderLineOut.model_validate(row) for row in rows])


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

@router.get(
    "/admin/orders",
    response_model=OrderPageResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
    summary="Search Order Lines",
)
async def admin_list_orders(
    customer: Optional[str] = Query(None),
    table: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: OrderQueryService = Depends(get_query_service),
) -> OrderPageResponse:
    """Filtered, paginated order lines. Pages past the end are empty."""
    result = await service.list_orders(
        {"customer": customer, "table": table, "date_from": date_from, "date_to": date_to},
        page=page,
        limit=limit,
    )
    return OrderPageResponse(
        orders=[OrderLineOut.model_validate(row) for row in result.orders],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get(
    "/admin/orders/export",
    responses=ERROR_RESPONSES,
    tags=["Admin"],
    summary="Export Order Lines",
)
async def admin_export_orders(
    customer: Optional[str] = Query(None),
    table: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    service: OrderQueryService = Depends(get_query_service),
) -> Response:
    """Download the matching order lines as an Excel workbook."""
    rows = await service.export_rows(
        {"customer": customer, "table": table, "date_from": date_from, "date_to": date_to}
    )
    return Response(
        content=OrderExporter.to_workbook(rows),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{OrderExporter.filename()}"'},
    )


@router.get(
    "/admin/orders/{order_id}",
    response_model=OrderDetailResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def admin_get_order(
    order_id: int,
    service: OrderQueryService = Depends(get_query_service),
) -> OrderDetailResponse:
    """Get a specific order line by ID."""
    row = await service.get_order(order_id)
    return OrderDetailResponse(order=OrderLineOut.model_validate(row))


@router.put(
    "/admin/orders/{order_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def admin_update_order(
    order_id: int,
    update: OrderUpdate,
    service: OrderQueryService = Depends(get_query_service),
) -> MessageResponse:
    """Rewrite customer, table, item, price and quantity of one line."""
    await service.update_order(order_id, update)
    return MessageResponse(message="Order updated successfully")


@router.delete(
    "/admin/orders/{order_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def admin_delete_order(
    order_id: int,
    service: OrderQueryService = Depends(get_query_service),
) -> MessageResponse:
    await service.delete_order(order_id)
    return MessageResponse(message="Order deleted successfully")


@router.get(
    "/admin/statistics",
    response_model=StatisticsResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
    summary="Dashboard Statistics",
)
async def admin_statistics(
    service: OrderQueryService = Depends(get_query_service),
) -> StatisticsResponse:
    """Total lines, total revenue, lines since midnight and most ordered item."""
    return StatisticsResponse(statistics=await service.get_statistics())


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@router.get(
    "/menu",
    response_model=MenuResponse,
    tags=["Menu"],
)
async def get_menu(menu: MenuService = Depends(get_menu_service)) -> MenuResponse:
    """Menu categories plus the order ceiling configuration."""
    return menu.to_response()


app.include_router(router)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(TapGoError)
async def tapgo_exception_handler(request: Request, exc: TapGoError) -> JSONResponse:
    """Map the error taxonomy onto status codes and JSON bodies."""
    body = exc.to_dict()

    if isinstance(exc, StoreError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
        if settings.is_production:
            body.pop("detail", None)
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests as 400 with the validation message."""
    error = ValidationError(describe_errors(exc.errors()))
    logger.info(f"{request.method} {request.url.path} -> 400: {error.message}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "message": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tapgo.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
