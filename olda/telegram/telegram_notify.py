import logging
from datetime import datetime

import requests

from olda import config
from olda.utils.enums import STATUS_LABELS_FR

logger = logging.getLogger(__name__)


class TelegramNotifier:
    def __init__(self, token: str, chat_ids):
        self.token = token
        self.chat_ids = list(chat_ids or [])
        self.api_url = f"https://api.telegram.org/bot{self.token}/sendMessage"

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_ids)

    def send(self, message: str) -> int:
        """Отправить сообщение во все чаты. Возвращает число успешных отправок."""
        if not self.enabled:
            return 0
        sent = 0
        for chat_id in self.chat_ids:
            try:
                resp = requests.post(self.api_url, data={
                    "chat_id": chat_id,
                    "text": message,
                    "parse_mode": "HTML",
                }, timeout=config.HTTP_TIMEOUT)
                resp.raise_for_status()
                sent += 1
            except requests.RequestException as e:
                logger.warning("Telegram send to %s failed: %s", chat_id, e)
        return sent

    def format_items(self, items):
        """Форматирование позиций заказа"""
        lines = [f"• {item.name} × {item.quantity}" for item in items]
        return "\n".join(lines) if lines else "—"

    def notify_order_created(self, order):
        date_str = datetime.now().strftime("%d/%m/%Y %H:%M")
        msg = [
            f"🆕 <b>Nouvelle commande #{order.order_number}</b>",
            f"📅 {date_str}",
            f"👤 Client : {order.customer_name or '—'}",
            f"📞 Téléphone : {order.customer_phone or '—'}",
            "\n📦 Articles :\n" + self.format_items(order.items or []),
        ]
        return self.send("\n".join(msg))

    def notify_status_changed(self, order, user: str):
        label = STATUS_LABELS_FR.get(order.status, order.status)
        msg = [
            f"⚡ <b>Commande #{order.order_number}</b>",
            f"📌 Nouveau statut : {label}",
            f"👤 Par : {user}",
        ]
        return self.send("\n".join(msg))


# глобальный экземпляр
notifier = TelegramNotifier(
    token=config.TELEGRAM_TOKEN,
    chat_ids=config.TELEGRAM_CHAT_IDS,
)
