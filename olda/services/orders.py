import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from olda.models.order import Order, OrderItem
from olda.models.order_status_log import OrderStatusLog
from olda.utils.enums import FulfillmentStatus, PaymentStatus

logger = logging.getLogger(__name__)

NUMBER_ATTEMPTS = 3


def _order_number(prefix: str, offset: int = 0) -> str:
    return f"{prefix}-{int(time.time() * 1000) + offset}"


def _save_with_number(db: Session, order: Order, prefix: str) -> Order:
    """Номер PREFIX-<ms>; при совпадении в ту же миллисекунду берём следующий."""
    for attempt in range(NUMBER_ATTEMPTS):
        order.order_number = _order_number(prefix, attempt)
        db.add(order)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == NUMBER_ATTEMPTS - 1:
                raise
            logger.warning("Order number %s already taken, retrying", order.order_number)
            continue
        db.refresh(order)
        return order


def create_manual_order(db: Session) -> Order:
    """Пустой заказ из UI: клиента и суммы заполнят потом."""
    order = Order(
        customer_name="",
        customer_email="",
        status=FulfillmentStatus.INTAKE.value,
        payment_status=PaymentStatus.PENDING.value,
        total=Decimal("0"),
        subtotal=Decimal("0"),
    )
    _save_with_number(db, order, "MAN")
    logger.info("Manual order %s created", order.order_number)
    return order


def create_test_order(db: Session) -> Order:
    """Тестовый заказ с демо-клиентом и двумя позициями."""
    order = Order(
        customer_name="Marie Dupont",
        customer_email="marie.dupont@example.com",
        customer_phone="+33 6 12 34 56 78",
        total=Decimal("149.99"),
        subtotal=Decimal("129.99"),
        shipping=Decimal("9.90"),
        tax=Decimal("10.10"),
        currency="EUR",
        shipping_address={
            "street": "15 Rue de la Paix",
            "city": "Paris",
            "postalCode": "75001",
            "country": "France",
        },
    )
    order.items = [
        OrderItem(name="Bougie Signature Ambre", sku="BSIG-AMB-001", quantity=2, price=Decimal("49.99")),
        OrderItem(name="Diffuseur Luxe Bois", sku="DLUX-BOIS-01", quantity=1, price=Decimal("30.01")),
    ]
    _save_with_number(db, order, "TEST")
    logger.info("Test order %s created", order.order_number)
    return order


def apply_order_update(
    db: Session,
    order: Order,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    notes: Optional[str] = None,
    user: str = "admin",
) -> Order:
    """Применить частичное обновление. Смена статуса выполнения пишется в журнал."""
    old_status = order.status

    if status is not None and status != old_status:
        order.status = status
        db.add(OrderStatusLog(
            order_id=order.id,
            old_status=old_status,
            new_status=status,
            user=user,
        ))
    if payment_status is not None:
        order.payment_status = payment_status
    if notes is not None:
        order.notes = notes

    order.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(order)
    return order
