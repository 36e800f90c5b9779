from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from productsaas.database.connection import create_tables
from productsaas.routers import (
    admin,
    auth,
    coupons,
    customers,
    dashboard,
    orders,
    paypal,
    products,
    queries,
    settings as settings_router,
    store,
)
from productsaas.core.config import settings
from productsaas.core.middleware import REQUEST_ID_HEADER, RequestContextMiddleware, SecurityHeadersMiddleware
from productsaas.core.exceptions import AppError
from productsaas.core.response import error_body

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ProductSaaS API",
    description="Sell digital products: storefronts, checkout with PayPal, and the seller dashboard API",
    version="1.0.0"
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.message, exc.error_code, exc.details),
        headers=headers
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten pydantic errors into field/message pairs."""
    errors = [
        {
            "field": '.'.join(str(part) for part in error['loc']),
            "message": error['msg'],
            "type": error['type']
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation failed on {request.method} {request.url.path}: {len(errors)} error(s)")

    return JSONResponse(
        status_code=422,
        content=error_body(request, "Request validation failed", "VALIDATION_ERROR", {"errors": errors})
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, message, "HTTP_ERROR"),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=error_body(request, "An unexpected error occurred. Please try again.", "INTERNAL_SERVER_ERROR")
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


# Order matters: first added is executed last
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(store.router, prefix="/api/store", tags=["Storefront"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(coupons.router, prefix="/api/coupons", tags=["Coupons"])
app.include_router(queries.router, prefix="/api/queries", tags=["Queries"])
app.include_router(settings_router.router, prefix="/api/settings", tags=["Settings"])
app.include_router(paypal.router, prefix="/api/paypal", tags=["PayPal"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(dashboard.router, tags=["Dashboard"])

# Create database tables on startup
@app.on_event("startup")
async def startup_event():
    """Initialize the application on startup."""
    logger.info("Starting up ProductSaaS API...")
    create_tables()
    logger.info(f"ProductSaaS API started ({settings.ENVIRONMENT}), coupons redeemed on {settings.COUPON_REDEEM_ON}")

@app.get("/")
def root():
    """Root endpoint for API health check."""
    return {
        "message": "Welcome to ProductSaaS API",
        "status": "healthy",
        "version": "1.0.0"
    }

@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }

@app.get("/api/health")
async def api_health_check():
    return {"status": "ok", "message": "Backend is running"}
