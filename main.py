from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from rideboard.routers import notifications, drivers, postal_codes

from rideboard.config import settings
from rideboard.database import Base, async_engine
from rideboard import models  # noqa: F401  registers tables on Base.metadata
from rideboard.utils.dependencies import get_zip_resolver

# Set up logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

NOTIFICATIONS_PREFIX = "/notifications"

# Initialize FastAPI app
app = FastAPI(title="Rideboard Notifier")

# Add CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Notification triggers answer malformed bodies as 400 {"error": ...}; other routes keep FastAPI's 422."""
    if not request.url.path.startswith(NOTIFICATIONS_PREFIX):
        return await request_validation_exception_handler(request, exc)

    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request body"
    logger.error(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


# Asynchronous function to create tables
async def create_tables():
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.on_event("startup")
async def on_startup():
    # A bad ZIP_CENTROIDS_PATH fails the boot instead of the first request
    resolver = get_zip_resolver()
    logger.info(f"ZIP centroid table ready with {len(resolver.centroids)} entries")

    if settings.CREATE_TABLES_ON_STARTUP:
        logger.info("Creating database tables...")
        await create_tables()


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("Disposing database engine...")
    await async_engine.dispose()


@app.get("/")
async def read_root():
    return {"message": "Rideboard notifier is running!"}


# Include routers
app.include_router(notifications.router, prefix=NOTIFICATIONS_PREFIX, tags=["Notifications"])
app.include_router(drivers.router, prefix="/drivers", tags=["Drivers"])
app.include_router(postal_codes.router, prefix="/postal-codes", tags=["PostalCodes"])
