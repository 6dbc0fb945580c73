from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging
import structlog
import time
from contextlib import asynccontextmanager

from models import (
    ErrorResponse,
    HealthResponse,
    InvalidRequestResponse,
    PaymentRequest,
    PaymentResult,
    Transaction,
)
from services import PaymentService, get_payment_service
from repositories import InMemoryLedgerStore, LedgerStore
from auth import AuthenticationError, verify_bearer_token
from config import Settings, get_settings

logger = structlog.get_logger()

# Routes wrapped by the bearer token check
PROTECTED_PATHS = frozenset({"/shopeepay/pay"})


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging on top of the stdlib logging module."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(
        "Starting ShopeePay Payment Service",
        seeded_accounts=await app.state.ledger_store.get_accounts_count()
    )
    yield
    # Shutdown
    logger.info("Shutting down ShopeePay Payment Service")


# Dependency injection
def get_ledger_store(request: Request) -> LedgerStore:
    return request.app.state.ledger_store


def get_service(request: Request) -> PaymentService:
    return request.app.state.payment_service


def get_token_claims(request: Request) -> Dict[str, Any]:
    """Claims verified by the bearer token guard."""
    return request.state.token_claims


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with its own ledger store and payment service."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Mock ShopeePay e-wallet payment endpoint with an in-memory ledger",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    ledger_store = InMemoryLedgerStore(initial_balance=settings.initial_balance)
    ledger_store.seed(settings.seed_accounts)

    app.state.settings = settings
    app.state.ledger_store = ledger_store
    app.state.payment_service = get_payment_service(
        ledger_store,
        settings.allowed_phone_numbers,
        settings.timezone
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    # Bearer token guard, runs before routing and body parsing
    @app.middleware("http")
    async def require_bearer_token(request: Request, call_next):
        if request.url.path not in PROTECTED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        try:
            request.state.token_claims = verify_bearer_token(
                request.headers.get("Authorization"),
                settings.jwt_secret,
                settings.jwt_algorithms
            )
        except AuthenticationError as e:
            logger.warning(
                "Request rejected, authentication failed",
                url=str(request.url),
                detail=e.detail
            )
            return JSONResponse(
                status_code=401,
                content=ErrorResponse(
                    detail=e.detail,
                    error_code="HTTP_401"
                ).model_dump(mode="json"),
                headers={"WWW-Authenticate": "Bearer"}
            )

        return await call_next(request)

    # Request logging middleware, registered last so it wraps the guard
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        logger.info(
            "Request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            process_time=round(process_time, 4)
        )

        return response

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check API health and get ledger statistics"
    )
    async def health_check(ledger_store: LedgerStore = Depends(get_ledger_store)):
        return HealthResponse(
            status="healthy",
            accounts_count=await ledger_store.get_accounts_count(),
            transactions_processed=await ledger_store.get_transactions_count()
        )

    # Main payment endpoint
    @app.post(
        "/shopeepay/pay",
        response_model=PaymentResult,
        summary="Process Payment",
        description=(
            "Record a ShopeePay payment. Unregistered phone numbers are rejected "
            "with status FAILED in the body and HTTP 200."
        ),
        responses={
            200: {"description": "Payment recorded or rejected, see the status field"},
            400: {"description": "Invalid request body", "model": InvalidRequestResponse},
            401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
            500: {"description": "Internal server error", "model": ErrorResponse}
        }
    )
    async def shopeepay_pay(
        payment_request: PaymentRequest,
        claims: Dict[str, Any] = Depends(get_token_claims),
        service: PaymentService = Depends(get_service)
    ):
        logger.info(
            "Payment request received",
            user_id=payment_request.user_id,
            subject=claims.get("sub")
        )

        result = await service.process_payment(payment_request)

        if isinstance(result, Transaction):
            logger.info(
                "Payment request completed successfully",
                transaction_id=result.id,
                user_id=payment_request.user_id
            )
        return result

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "Invalid request body",
            url=str(request.url),
            errors=str(exc.errors())
        )
        return JSONResponse(
            status_code=400,
            content=InvalidRequestResponse().model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                detail=exc.detail,
                error_code=f"HTTP_{exc.status_code}"
            ).model_dump(mode="json"),
            headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            url=str(request.url),
            method=request.method,
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                detail="Internal server error",
                error_code="INTERNAL_ERROR"
            ).model_dump(mode="json")
        )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "ShopeePay Service is running! You can now make transactions from the BNI app.",
            "docs": "/docs"
        }

    return app


# Logging is process-wide, configured once at import
configure_logging(get_settings().log_level, get_settings().log_format)

app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
