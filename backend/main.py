# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import SessionLocal, init_db
from middlewares.timeout import RequestTimeoutMiddleware
from services.users import ensure_admin
from utils.errors import register_error_handlers

# Routers
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.logs import router as logs_router
from routes.categories import router as categories_router
from routes.suppliers import router as suppliers_router
from routes.products import router as products_router
from routes.stock import router as stock_router
from routes.alerts import router as alerts_router
from routes.reports import router as reports_router
from routes.stats import router as stats_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def bootstrap():
    """Create tables and the first administrator account."""
    init_db()
    db = SessionLocal()
    try:
        ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap()
    logger.info("Inventory Tracker API started")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Inventory Tracker API", version="1.0.0", lifespan=lifespan)

    # CORS: the single page frontend plus local dev servers
    origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimeoutMiddleware, timeout=settings.REQUEST_TIMEOUT_SECONDS)

    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(logs_router)
    app.include_router(categories_router)
    app.include_router(suppliers_router)
    app.include_router(products_router)
    app.include_router(stock_router, prefix="/stock")
    app.include_router(alerts_router)
    app.include_router(reports_router)
    app.include_router(stats_router)

    @app.get("/")
    def read_root():
        return {"message": "Inventory Tracker API is running"}

    return app


app = create_app()
