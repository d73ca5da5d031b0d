from typing import Any, Dict, Optional
from olda.models.order import Order, OrderItem


def _money(value) -> float:
    return float(value or 0)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def item_to_dict(i: OrderItem) -> Dict[str, Any]:
    return {
        "id": i.id,
        "name": i.name,
        "sku": i.sku,
        "quantity": i.quantity,
        "price": _money(i.price),
        "imageUrl": i.image_url,
    }


def order_to_dict(o: Order) -> Dict[str, Any]:
    """Заказ в JSON-форме API (camelCase, как ждёт фронт)."""
    return {
        "id": o.id,
        "orderNumber": o.order_number,
        "status": o.status,
        "paymentStatus": o.payment_status,
        "customerName": o.customer_name,
        "customerEmail": o.customer_email,
        "customerPhone": o.customer_phone,
        "shippingAddress": o.shipping_address,
        "subtotal": _money(o.subtotal),
        "shipping": _money(o.shipping),
        "tax": _money(o.tax),
        "total": _money(o.total),
        "currency": o.currency,
        "category": o.category,
        "notes": o.notes,
        "createdAt": _iso(o.created_at),
        "updatedAt": _iso(o.updated_at),
        "items": [item_to_dict(i) for i in (o.items or [])],
    }
