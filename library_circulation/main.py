import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.config import settings
from library_circulation.core.exceptions import LibraryError
from library_circulation.core.logging import setup_logging, get_logger, request_id_ctx
from library_circulation.db.session import engine, get_db
from library_circulation.db.models import Base
from library_circulation.services.overdue import overdue_checker_loop

logger = get_logger("library_circulation.main")

# Background task reference
_overdue_task: asyncio.Task | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    global _overdue_task

    # Startup
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    _overdue_task = asyncio.create_task(overdue_checker_loop())
    logger.info("Background overdue checker started")

    yield

    # Shutdown
    if _overdue_task:
        _overdue_task.cancel()
        try:
            await _overdue_task
        except asyncio.CancelledError:
            pass
    await engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "## Library Circulation API\n\n"
        "Tracks which copies of which titles are out, with whom, until when, "
        "and what late fines they have earned.\n\n"
        "- **Categories / Books** – the catalog and its available-copy counters\n"
        "- **Members** – borrowers, with limits and loan periods by member type\n"
        "- **Loans** – lend, edit, return and delete loans; sweep overdue loans\n"
        "- **Fines** – late-return fines and payments\n"
        "- **Reports** – dashboard totals, popular books, member activity\n\n"
        "### Errors\n"
        "Every failure is returned as `{\"kind\": ..., \"msg\": ...}` where `kind` is one of "
        "`validation`, `not_found`, `conflict` or `internal`.\n"
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Application health checks"},
        {"name": "Categories", "description": "Book categories"},
        {"name": "Books", "description": "Catalog management and search"},
        {"name": "Members", "description": "Member registration and management"},
        {"name": "Loans", "description": "Loan lifecycle – lend, edit, return, delete"},
        {"name": "Fines", "description": "Fine ledger and payments"},
        {"name": "Reports", "description": "Read-only statistics"},
    ],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID and timing middleware
@app.middleware("http")
async def request_middleware(request: Request, call_next):
    req_id = str(uuid.uuid4())[:8]
    request_id_ctx.set(req_id)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({duration:.3f}s)"
    )

    response.headers["X-Request-ID"] = req_id
    return response


# ──────────────────────────── Error handlers ────────────────────────────


@app.exception_handler(LibraryError)
async def library_error_handler(request: Request, exc: LibraryError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "msg": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"kind": "validation", "msg": f"{field}: {message}" if field else message},
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"kind": "internal", "msg": "Internal server error"},
    )


# Health check
@app.get(
    "/health",
    tags=["Health"],
    summary="Health check",
    description="Returns the current health status, database connectivity and API version.",
)
async def health_check(db: Annotated[AsyncSession, Depends(get_db)]):
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check failed: database unreachable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unreachable", "version": settings.APP_VERSION},
        )
    return {"status": "healthy", "database": "connected", "version": settings.APP_VERSION}


# Include routers
from library_circulation.api.v1.endpoints.categories import router as categories_router
from library_circulation.api.v1.endpoints.books import router as books_router
from library_circulation.api.v1.endpoints.members import router as members_router
from library_circulation.api.v1.endpoints.loans import router as loans_router
from library_circulation.api.v1.endpoints.fines import router as fines_router
from library_circulation.api.v1.endpoints.reports import router as reports_router

app.include_router(categories_router, prefix="/api/v1")
app.include_router(books_router, prefix="/api/v1")
app.include_router(members_router, prefix="/api/v1")
app.include_router(loans_router, prefix="/api/v1")
app.include_router(fines_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
