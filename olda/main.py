import logging
import sys

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import RedirectResponse

from olda import config
from olda.db import Base, engine

# Импортируем все модели до create_all(),
# чтобы SQLAlchemy знал про классы и связи
import olda.models  # noqa: F401

from sqlalchemy.orm import configure_mappers
configure_mappers()


def setup_logging():
    """Логи в консоль и, если задан LOG_PATH, в файл."""
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.LOG_PATH:
        try:
            file_handler = logging.FileHandler(config.LOG_PATH)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error("Failed to set up file logging: %s", e)

    return logging.getLogger(__name__)


logger = setup_logging()

# Создаём таблицы
Base.metadata.create_all(bind=engine)


# ==== FastAPI app ====
app = FastAPI(title=config.APP_NAME)

from olda.middleware.rbac import RBACMiddleware  # noqa: E402
app.add_middleware(RBACMiddleware)
# Сессии (логин, флеш-сообщения) должны оборачивать RBAC
app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY)


# ==== Routers ====
from olda.routers import admin_orders, admin_prt, auth, orders_api  # noqa: E402
app.include_router(auth.router)
app.include_router(orders_api.router)
app.include_router(admin_orders.router)
app.include_router(admin_prt.router)


@app.get("/")
def index():
    return RedirectResponse("/admin/orders", status_code=303)


logger.info("%s started (env=%s)", config.APP_NAME, config.ENV)
