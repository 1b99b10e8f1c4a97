import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import Database
from .errors import InvalidTransition, NotFound, PersistenceFailure
from .globals import db, vocab_manager
from .log_handler import SQLiteHandler
from .router import router


# --- Logging Setup ---
def setup_logging(database: Database):
    logger = logging.getLogger("kanjiquiz")
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    if logger.handlers:
        return

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    database.init_db()
    sqlite_handler = SQLiteHandler(database)
    sqlite_handler.setLevel(logging.WARNING)
    sqlite_handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    logger.addHandler(sqlite_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init_db()
    vocab_manager.load_all()
    yield


# --- Error mapping ---
def _error_response(status_code: int):
    async def handler(request: Request, exc: Exception):
        return JSONResponse({"error": str(exc)}, status_code=status_code)

    return handler


# --- App Factory ---
def create_app() -> FastAPI:
    setup_logging(db)
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    app.add_exception_handler(NotFound, _error_response(404))
    app.add_exception_handler(InvalidTransition, _error_response(409))
    app.add_exception_handler(PersistenceFailure, _error_response(503))

    app.include_router(router)

    return app
