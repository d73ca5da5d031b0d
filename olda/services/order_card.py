import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from olda.models.order import Order

_DTF_RE = re.compile(r"arrière|arriere|back|dtf", re.IGNORECASE)

_MONTHS_FR = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]


def dtf_label(order: Order) -> Optional[str]:
    """Что печатаем на спине: первая позиция с arrière/back/dtf в имени или SKU."""
    items = list(order.items or [])
    dtf_item = next(
        (i for i in items if _DTF_RE.search(i.name or "") or _DTF_RE.search(i.sku or "")),
        None,
    )
    if dtf_item:
        return dtf_item.sku or dtf_item.name or None
    return items[0].sku if items and items[0].sku else None


# разделители как у Intl fr-FR: узкий неразрывный пробел в тысячах, неразрывный перед валютой
_GROUP_SEP = "\u202f"
_CURRENCY_SEP = "\xa0"


def format_money_fr(amount, currency: str = "EUR") -> str:
    # без копеек, половинки округляем от нуля: 148,50 → 149
    value = int(Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    symbol = "€" if currency == "EUR" else currency
    grouped = f"{value:,}".replace(",", _GROUP_SEP)
    return f"{grouped}{_CURRENCY_SEP}{symbol}"



def format_date_fr(value) -> str:
    return f"{value.day} {_MONTHS_FR[value.month - 1]} {value.year}" if value else ""


def card_summary(order: Order, origin: str = "") -> Dict[str, Any]:
    items = list(order.items or [])
    return {
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone or "—",
        "total_qty": sum(i.quantity or 0 for i in items),
        "dtf_label": dtf_label(order),
        "limit_text": (order.notes or "").strip() or None,
        "date": format_date_fr(order.created_at),
        "qr_value": f"{origin}/dashboard/orders/{order.id}" if origin else order.order_number,
        "total": format_money_fr(order.total, order.currency or "EUR"),
    }
