import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import guard
from auth import router as auth_router
from certificates import router as certificates_router
from core import db, logging_setup, settings
from dashboard import router as dashboard_router
from verification import router as verification_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging_setup.configure_logging()
    # Initialize the DB pool once per process.
    await db.init_pool()
    if settings.env_flag("DB_APPLY_SCHEMA"):
        await db.apply_schema()
        logger.info("schema_applied path=%s", db.SCHEMA_PATH)
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="qr-verify", lifespan=lifespan)

# Added first so CORS wraps it and 401s still carry CORS headers.
app.add_middleware(guard.AuthGuardMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(certificates_router.router, tags=["qr-codes"])
app.include_router(verification_router.router, tags=["verification"])
app.include_router(dashboard_router.router, tags=["dashboard"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "qr-verify api"}
