import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import DomainError, MessagingError, http_status_for
from app.routers import failed_messages, notifications, offers, payments, subscriptions

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Offers", "description": "Priced, periodic offers customers subscribe to."},
    {"name": "Subscriptions", "description": "Subscribe, change status and request renewals."},
    {"name": "Payments", "description": "Renewal payments and gateway callbacks."},
    {"name": "Notifications", "description": "Customer notifications about payment outcomes."},
    {"name": "Failed Messages", "description": "Quarantined messages that exhausted retries."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Subscription renewal service. Renewals run as a saga over the "
        "payment-requests and payment-events topics."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=http_status_for(exc), content={"detail": str(exc)})


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
    logger.error("Messaging failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(offers.router, prefix="/v1/offers", tags=["Offers"])
app.include_router(subscriptions.router, prefix="/v1/subscriptions", tags=["Subscriptions"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])
app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])
app.include_router(
    failed_messages.router,
    prefix="/v1/failed_messages",
    tags=["Failed Messages"],
)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
