"""
Очередь заявок PRT: любой сотрудник отправляет заявку (категория, размер,
количество, цвет), получатель PRT отмечает её «просмотрено» / «обработано»
и чистит обработанные.

Вся очередь хранится одним JSON-списком под ключом STORAGE_KEY, новые сверху.
Каждая операция переписывает список целиком из памяти экземпляра, поэтому
два экземпляра с устаревшими копиями перетирают изменения друг друга
(last writer wins). Событие хранилища от другого писателя перечитывает список.
"""
import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from olda.services.client_storage import KeyValueStore, read_json_list, write_json
from olda.utils.enums import PRTStatus
from olda.utils.permissions import Capability, Identity, has_capability

logger = logging.getLogger(__name__)

STORAGE_KEY = "prt_requests_v1"

CATEGORIES = [
    "T-shirt",
    "Polo",
    "Sweat",
    "Casquette",
    "Sac",
    "Accessoire",
    "Autre",
]

FLASH_SECONDS = 2.2

_BASE36 = string.digits + string.ascii_lowercase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_request_id(now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(3))
    return f"prt{millis}{suffix}"


@dataclass
class PRTRequest:
    id: str
    category: str
    size: str
    quantity: int
    color: str
    submitter: str
    created_at: str
    status: str = PRTStatus.NEW.value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "size": self.size,
            "quantity": self.quantity,
            "color": self.color,
            "from": self.submitter,
            "createdAt": self.created_at,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PRTRequest":
        return cls(
            id=str(data["id"]),
            category=data.get("category") or CATEGORIES[0],
            size=data.get("size") or "",
            quantity=int(data.get("quantity") or 1),
            color=data.get("color") or "",
            submitter=data.get("from") or "",
            created_at=data.get("createdAt") or "",
            status=data.get("status") or PRTStatus.NEW.value,
        )


@dataclass
class PRTForm:
    category: str = CATEGORIES[0]
    size: str = ""
    quantity: int = 1
    color: str = ""

    def reset(self) -> None:
        self.category = CATEGORIES[0]
        self.size = ""
        self.quantity = 1
        self.color = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.size.strip()) and bool(self.color.strip())


class PRTQueue:
    def __init__(
        self,
        store: KeyValueStore,
        identity: Optional[Identity],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.identity = identity
        self._clock = clock or _utcnow
        self.requests: List[PRTRequest] = []
        self.form = PRTForm()
        self._flash_until: Optional[datetime] = None
        self._unsubscribe = store.subscribe(self._on_storage_event, owner=self)
        self.load()

    def close(self) -> None:
        self._unsubscribe()

    # ---- синхронизация ----
    def load(self) -> List[PRTRequest]:
        loaded = []
        for raw in read_json_list(self.store, STORAGE_KEY):
            try:
                loaded.append(PRTRequest.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed PRT request: %r", raw)
        self.requests = loaded
        return loaded

    def _on_storage_event(self, key: str) -> None:
        if key == STORAGE_KEY:
            self.load()

    def _persist(self, updated: List[PRTRequest]) -> None:
        self.requests = updated
        write_json(self.store, STORAGE_KEY, [r.to_dict() for r in updated], origin=self)

    # ---- права ----
    def _can(self, capability: Capability) -> bool:
        return has_capability(self.identity, capability)

    @property
    def is_recipient(self) -> bool:
        return self._can(Capability.PRT_ADVANCE)

    def can_remove(self, req: PRTRequest) -> bool:
        if self._can(Capability.PRT_DELETE_ANY):
            return True
        return self.identity is not None and req.submitter == self.identity.name

    # ---- отправка ----
    def submit(
        self,
        category: Optional[str] = None,
        size: Optional[str] = None,
        quantity: Optional[int] = None,
        color: Optional[str] = None,
    ) -> Optional[PRTRequest]:
        """Новая заявка в начало списка. При пустом размере или цвете ничего не делаем."""
        if category is not None:
            self.form.category = category
        if size is not None:
            self.form.size = size
        if quantity is not None:
            self.form.quantity = quantity
        if color is not None:
            self.form.color = color

        if not self.form.is_complete or not self._can(Capability.PRT_SUBMIT):
            return None

        now = self._clock()
        req = PRTRequest(
            id=new_request_id(now),
            category=self.form.category if self.form.category in CATEGORIES else CATEGORIES[0],
            size=self.form.size.strip(),
            quantity=max(1, int(self.form.quantity or 1)),
            color=self.form.color.strip(),
            submitter=self.identity.name,
            created_at=now.isoformat(),
            status=PRTStatus.NEW.value,
        )
        self._persist([req] + self.requests)
        self.form.reset()
        self._flash_until = now + timedelta(seconds=FLASH_SECONDS)
        logger.info("PRT request %s submitted by %s", req.id, req.submitter)
        return req

    def flash_visible(self, now: Optional[datetime] = None) -> bool:
        if self._flash_until is None:
            return False
        return (now or self._clock()) < self._flash_until

    # ---- действия получателя ----
    def _find(self, request_id: str) -> Optional[PRTRequest]:
        return next((r for r in self.requests if r.id == request_id), None)

    def _set_status(self, request_id: str, status: str) -> None:
        self._persist([
            PRTRequest(**{**r.__dict__, "status": status}) if r.id == request_id else r
            for r in self.requests
        ])

    def mark_seen(self, request_id: str) -> bool:
        req = self._find(request_id)
        if not self.is_recipient or req is None or req.status != PRTStatus.NEW.value:
            return False
        self._set_status(request_id, PRTStatus.SEEN.value)
        return True

    def mark_done(self, request_id: str) -> bool:
        req = self._find(request_id)
        if not self.is_recipient or req is None or req.status == PRTStatus.DONE.value:
            return False
        self._set_status(request_id, PRTStatus.DONE.value)
        return True

    def advance(self, request_id: str) -> bool:
        """new → seen → done, только вперёд."""
        req = self._find(request_id)
        if req is None:
            return False
        if req.status == PRTStatus.NEW.value:
            return self.mark_seen(request_id)
        return self.mark_done(request_id)

    def remove(self, request_id: str) -> bool:
        req = self._find(request_id)
        if req is None or not self.can_remove(req):
            return False
        self._persist([r for r in self.requests if r.id != request_id])
        return True

    def clear_done(self) -> int:
        if not self._can(Capability.PRT_CLEAR):
            return 0
        kept = [r for r in self.requests if r.status != PRTStatus.DONE.value]
        removed = len(self.requests) - len(kept)
        if removed:
            self._persist(kept)
        return removed

    # ---- для панели ----
    @property
    def pending_count(self) -> int:
        return sum(1 for r in self.requests if r.status != PRTStatus.DONE.value)

    @property
    def has_done(self) -> bool:
        return any(r.status == PRTStatus.DONE.value for r in self.requests)
