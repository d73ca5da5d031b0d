"""
Редактор статусов заказа (форма на странице заказа).

Два select-а (статус выполнения и статус оплаты) правятся независимо
и хранятся как черновик. «Сохранить» отправляет оба поля одним PATCH.
Показанный заказ меняется только на ответ сервера: оптимистичного
обновления нет, при ошибке черновик остаётся как есть.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

import requests

from olda import config
from olda.utils.enums import FulfillmentStatus, PaymentStatus

logger = logging.getLogger(__name__)

MSG_SAVED = "Statut mis à jour avec succès"
MSG_FAILED = "Erreur lors de la mise à jour"


def audit_line(actor: str, when: datetime) -> str:
    return f"status changed by {actor} on {when:%d/%m/%Y} at {when:%H:%M}"


def append_note(notes: Optional[str], line: str) -> str:
    return f"{notes}\n{line}" if notes else line


def build_status_payload(
    current_status: str,
    current_notes: Optional[str],
    new_status: str,
    new_payment: str,
    actor: str,
    when: datetime,
) -> dict:
    """Частичное обновление: всегда оба статуса, заметка только при смене статуса."""
    payload = {"status": new_status, "paymentStatus": new_payment}
    if new_status != current_status:
        payload["notes"] = append_note(current_notes, audit_line(actor, when))
    return payload


# ---- уведомления (тосты) ----
@dataclass
class Notification:
    level: str
    message: str


@dataclass
class Notifications:
    items: List[Notification] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.items.append(Notification("success", message))

    def error(self, message: str) -> None:
        self.items.append(Notification("error", message))

    @property
    def last(self) -> Optional[Notification]:
        return self.items[-1] if self.items else None


# ---- HTTP-клиент API заказов ----
class HttpOrderApi:
    def __init__(self, base_url: str = None, timeout: float = None, session: requests.Session = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout or config.HTTP_TIMEOUT
        self.session = session or requests.Session()

    def update_order(self, order_id: str, payload: dict) -> dict:
        resp = self.session.patch(
            f"{self.base_url}/api/orders/{order_id}",
            json=payload,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["order"]


class OrderStatusEditor:
    def __init__(
        self,
        order: dict,
        actor: str,
        notifications: Optional[Notifications] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.order = order
        self.actor = actor
        self.notifications = notifications or Notifications()
        self._clock = clock or datetime.now
        self.saving = False
        self._reset_drafts()

    def _reset_drafts(self) -> None:
        self.draft_status = self.order["status"]
        self.draft_payment = self.order["paymentStatus"]
        self.editing_status = False
        self.editing_payment = False

    # ---- select'ы ----
    def select_status(self, value: str) -> None:
        self.draft_status = FulfillmentStatus(value).value
        self.editing_status = True

    def select_payment(self, value: str) -> None:
        self.draft_payment = PaymentStatus(value).value
        self.editing_payment = True

    @property
    def is_editing(self) -> bool:
        return self.editing_status or self.editing_payment

    def cancel(self) -> None:
        self._reset_drafts()

    # ---- сохранение ----
    def build_payload(self) -> dict:
        return build_status_payload(
            current_status=self.order["status"],
            current_notes=self.order.get("notes"),
            new_status=self.draft_status,
            new_payment=self.draft_payment,
            actor=self.actor,
            when=self._clock(),
        )

    def save(self, api) -> bool:
        self.saving = True
        try:
            updated = api.update_order(self.order["id"], self.build_payload())
            if not isinstance(updated, dict):
                raise ValueError("order payload is not an object")
            if "status" not in updated or "paymentStatus" not in updated:
                raise ValueError("order payload has no status fields")
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.warning("Status update for order %s failed: %s", self.order.get("id"), e)
            self.notifications.error(MSG_FAILED)
            return False
        finally:
            self.saving = False

        self.order = updated
        self._reset_drafts()
        self.notifications.success(MSG_SAVED)
        return True
