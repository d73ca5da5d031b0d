import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from olda.db import get_db
from olda.models.order import Order
from olda.services.orders import apply_order_update, create_manual_order, create_test_order
from olda.telegram.telegram_notify import notifier
from olda.utils.enums import FulfillmentStatus, PaymentStatus
from olda.utils.order_utils import order_to_dict
from olda.utils.permissions import identity_from_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders-api"])


class OrderUpdate(BaseModel):
    """Тело PATCH: любое подмножество полей."""
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[FulfillmentStatus] = None
    payment_status: Optional[PaymentStatus] = Field(None, alias="paymentStatus")
    notes: Optional[str] = None


def _get_order_or_404(db: Session, order_id: str) -> Order:
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# ---------- СПИСОК ----------
@router.get("")
def list_orders(
    status: str = Query("all"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    q = db.query(Order).order_by(Order.created_at.desc())
    if status != "all":
        q = q.filter(Order.status == status)
    return {"orders": [order_to_dict(o) for o in q.limit(limit).all()]}


# ---------- СОЗДАНИЕ ----------
@router.post("/manual", status_code=201)
def create_manual(db: Session = Depends(get_db)):
    try:
        order = create_manual_order(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("POST /api/orders/manual failed: %s", e)
        return JSONResponse(
            {"error": "Manual order create failed", "detail": str(e)},
            status_code=500,
        )
    notifier.notify_order_created(order)
    return {"order": order_to_dict(order)}


@router.post("/test", status_code=201)
def create_test(db: Session = Depends(get_db)):
    try:
        order = create_test_order(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("POST /api/orders/test failed: %s", e)
        return JSONResponse(
            {"error": "Test order create failed", "detail": str(e)},
            status_code=500,
        )
    return {"success": True, "order": order_to_dict(order)}


# ---------- ДЕТАЛИ ----------
@router.get("/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db)):
    return {"order": order_to_dict(_get_order_or_404(db, order_id))}


# ---------- ЧАСТИЧНОЕ ОБНОВЛЕНИЕ ----------
@router.patch("/{order_id}")
def update_order(
    order_id: str,
    body: OrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    order = _get_order_or_404(db, order_id)
    identity = identity_from_session(request.session)
    user = identity.name if identity else "admin"
    old_status = order.status

    order = apply_order_update(
        db,
        order,
        status=body.status.value if body.status else None,
        payment_status=body.payment_status.value if body.payment_status else None,
        notes=body.notes,
        user=user,
    )
    if order.status != old_status:
        notifier.notify_status_changed(order, user)
    return {"order": order_to_dict(order)}
