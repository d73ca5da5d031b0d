import base64
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from olda import config
from olda.db import get_db
from olda.models.order import Order
from olda.models.order_status_log import OrderStatusLog
from olda.services.client_storage import KeyValueStore, get_store
from olda.services.order_card import card_summary
from olda.services.order_images import LocalImages, display_images
from olda.services.orders import apply_order_update, create_manual_order, create_test_order
from olda.services.status_editor import build_status_payload
from olda.services.todos import TodoList
from olda.telegram.telegram_notify import notifier
from olda.utils.enums import (
    PAYMENT_LABELS_FR,
    STATUS_LABELS_FR,
    FulfillmentStatus,
    PaymentStatus,
)
from olda.utils.flash import flash, pop_flash
from olda.utils.permissions import identity_from_session

logger = logging.getLogger(__name__)
templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))
router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])

ALLOWED_STATUSES = [s.value for s in FulfillmentStatus]
ALLOWED_PAYMENTS = [p.value for p in PaymentStatus]


def _parse_date(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    s = s.strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            pass
    return None


def _get_order_or_404(db: Session, order_id: str) -> Order:
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Commande introuvable")
    return order


def _back(order_id: str) -> RedirectResponse:
    return RedirectResponse(url=f"/admin/orders/{order_id}", status_code=303)


# ---------- СПИСОК ----------
@router.get("", response_class=HTMLResponse)
def list_orders(
    request: Request,
    db: Session = Depends(get_db),
    q: Optional[str] = Query(None, description="поиск по номеру/имени/телефону"),
    status: str = Query("all"),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
):
    query = db.query(Order).order_by(Order.created_at.desc())

    if q:
        like = "%%%s%%" % q
        query = query.filter(or_(
            Order.order_number.ilike(like),
            Order.customer_name.ilike(like),
            Order.customer_phone.ilike(like),
        ))
    if status != "all":
        query = query.filter(Order.status == status)

    df = _parse_date(date_from)
    dt = _parse_date(date_to)
    if dt:
        dt = datetime(dt.year, dt.month, dt.day, 23, 59, 59)
    if df and dt:
        query = query.filter(and_(Order.created_at >= df, Order.created_at <= dt))
    elif df:
        query = query.filter(Order.created_at >= df)
    elif dt:
        query = query.filter(Order.created_at <= dt)

    return templates.TemplateResponse(request, "admin/orders_list.html", {
        "orders": query.all(),
        "q": q or "",
        "status": status,
        "date_from": date_from or "",
        "date_to": date_to or "",
        "allowed_statuses": ALLOWED_STATUSES,
        "status_labels": STATUS_LABELS_FR,
        "payment_labels": PAYMENT_LABELS_FR,
        "flash": pop_flash(request),
    })


@router.post("/create-manual")
def create_manual(request: Request, db: Session = Depends(get_db)):
    try:
        order = create_manual_order(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Manual order create failed: %s", e)
        flash(request, "❌ Création de la commande impossible")
        return RedirectResponse(url="/admin/orders", status_code=303)
    notifier.notify_order_created(order)
    flash(request, f"Commande {order.order_number} créée")
    return _back(order.id)


@router.post("/create-test")
def create_test(request: Request, db: Session = Depends(get_db)):
    try:
        order = create_test_order(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Test order create failed: %s", e)
        flash(request, "❌ Création de la commande test impossible")
        return RedirectResponse(url="/admin/orders", status_code=303)
    flash(request, f"Commande test {order.order_number} créée")
    return _back(order.id)



# ---------- ДЕТАЛИ ЗАКАЗА ----------
@router.get("/{order_id}", response_class=HTMLResponse)
def order_detail(
    request: Request,
    order_id: str,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    order = _get_order_or_404(db, order_id)
    history = (
        db.query(OrderStatusLog)
        .filter(OrderStatusLog.order_id == order.id)
        .order_by(OrderStatusLog.created_at.desc())
        .all()
    )
    todos = TodoList(store, order.id)
    images = LocalImages(store, order.id)

    return templates.TemplateResponse(request, "admin/order_detail.html", {
        "order": order,
        "card": card_summary(order, config.PUBLIC_ORIGIN),
        "shipping": order.shipping_address or {},
        "history": history,
        "todos": todos.todos,
        "todo_pending": todos.pending_count,
        "images": display_images(order, images),
        "allowed_statuses": ALLOWED_STATUSES,
        "allowed_payments": ALLOWED_PAYMENTS,
        "status_labels": STATUS_LABELS_FR,
        "payment_labels": PAYMENT_LABELS_FR,
        "flash": pop_flash(request),
    })


# ---------- СМЕНА СТАТУСОВ ----------
@router.post("/{order_id}/status")
def change_status(
    request: Request,
    order_id: str,
    status: str = Form(...),
    payment_status: str = Form(...),
    db: Session = Depends(get_db),
):
    if status not in ALLOWED_STATUSES or payment_status not in ALLOWED_PAYMENTS:
        raise HTTPException(status_code=400, detail="Statut invalide")

    order = _get_order_or_404(db, order_id)
    identity = identity_from_session(request.session)
    actor = identity.name if identity else "admin"
    old_status = order.status

    payload = build_status_payload(
        current_status=order.status,
        current_notes=order.notes,
        new_status=status,
        new_payment=payment_status,
        actor=actor,
        when=datetime.now(),
    )
    order = apply_order_update(
        db,
        order,
        status=payload["status"],
        payment_status=payload["paymentStatus"],
        notes=payload.get("notes"),
        user=actor,
    )
    if order.status != old_status:
        notifier.notify_status_changed(order, actor)

    flash(request, "Statut mis à jour avec succès")
    return _back(order.id)


# ---------- TODO КАРТОЧКИ ----------
@router.post("/{order_id}/todos")
def todo_add(
    order_id: str,
    text: str = Form(""),
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    order = _get_order_or_404(db, order_id)
    TodoList(store, order.id).add(text)
    return _back(order.id)


@router.post("/{order_id}/todos/{todo_id}/toggle")
def todo_toggle(
    order_id: str,
    todo_id: str,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    order = _get_order_or_404(db, order_id)
    TodoList(store, order.id).toggle(todo_id)
    return _back(order.id)


@router.post("/{order_id}/todos/{todo_id}/delete")
def todo_delete(
    order_id: str,
    todo_id: str,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    order = _get_order_or_404(db, order_id)
    TodoList(store, order.id).delete(todo_id)
    return _back(order.id)


# ---------- ВИЗУАЛЫ ----------
@router.post("/{order_id}/images")
async def image_upload(
    order_id: str,
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    order = _get_order_or_404(db, order_id)
    raw = await image.read()
    if raw:
        mime = image.content_type or "application/octet-stream"
        data_url = f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"
        LocalImages(store, order.id).add(data_url)
    return _back(order.id)
