import logging
import time

from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from olda import config
from olda.db import get_db
from olda.models.user import User
from olda.utils.security import verify_password

logger = logging.getLogger(__name__)
router = APIRouter()
templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))

# 🔹 Rate limit config
MAX_ATTEMPTS = 5          # максимум попыток
BLOCK_TIME = 60           # блокировка на 60 секунд
login_attempts = {}       # { "ip": {"count": int, "last": timestamp} }


def check_rate_limit(ip: str) -> bool:
    """Проверка лимита по IP"""
    data = login_attempts.get(ip)
    if not data:
        return True
    # если ещё идёт блокировка
    if data["count"] >= MAX_ATTEMPTS and time.time() - data["last"] < BLOCK_TIME:
        return False
    return True


def add_attempt(ip: str):
    """Запись неудачной попытки"""
    now = time.time()
    attempts = login_attempts.get(ip)
    if not attempts or now - attempts["last"] > BLOCK_TIME:
        # сбрасываем после блокировки
        login_attempts[ip] = {"count": 1, "last": now}
    else:
        attempts["count"] += 1
        attempts["last"] = now


def reset_attempts(ip: str):
    login_attempts.pop(ip, None)


# форма логина
@router.get("/login")
def login_page(request: Request):
    return templates.TemplateResponse(request, "auth/login.html", {})


# обработка логина
@router.post("/login")
def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    client_ip = request.client.host if request.client else "unknown"

    if not check_rate_limit(client_ip):
        return templates.TemplateResponse(
            request, "auth/login.html",
            {"error": "Trop de tentatives. Réessayez dans une minute."},
            status_code=429,
        )

    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        add_attempt(client_ip)
        return templates.TemplateResponse(
            request, "auth/login.html",
            {"error": "Identifiant ou mot de passe incorrect"},
            status_code=401,
        )

    reset_attempts(client_ip)

    # сохраняем в сессии
    request.session["user_id"] = user.id
    request.session["role"] = (user.role or "").strip().lower()
    request.session["display_name"] = user.display_name or user.username
    logger.info("Login: %s role=%s", user.username, request.session["role"])

    return RedirectResponse("/admin/orders", status_code=303)


# выход
@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return RedirectResponse("/login", status_code=303)


@router.get("/whoami")
def whoami(request: Request):
    return {
        "user_id": request.session.get("user_id"),
        "name": request.session.get("display_name"),
        "role": request.session.get("role"),
    }
