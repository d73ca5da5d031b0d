"""
Key-value хранилище для «клиентских» данных дашборда:
очередь заявок PRT, todo и картинки карточек заказов.

Контракт повторяет localStorage браузера:
- значения: строки (JSON), запись всегда целиком (read-modify-write);
- после записи все подписчики, кроме самого писателя, получают событие
  с ключом (аналог события `storage` в соседних вкладках);
- блокировок и версий нет: кто записал последним, тот и прав.
"""
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from olda.db import SessionLocal
from olda.models.client_storage import ClientStorageEntry

logger = logging.getLogger(__name__)

StorageListener = Callable[[str], None]


class StorageWriteError(Exception):
    """Запись не удалась (переполнена квота, упала БД и т.п.)."""


class KeyValueStore:
    def __init__(self, auto_dispatch: bool = True):
        self.auto_dispatch = auto_dispatch
        self._listeners: List[Tuple[StorageListener, Any]] = []
        self._pending: List[Tuple[str, Any]] = []

    # ---- чтение/запись (реализуют наследники) ----
    def _read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write(self, key: str, value: Optional[str]) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[str]:
        return self._read(key)

    def set(self, key: str, value: str, origin: Any = None) -> None:
        self._write(key, value)
        self._notify(key, origin)

    def remove(self, key: str, origin: Any = None) -> None:
        self._write(key, None)
        self._notify(key, origin)

    # ---- события ----
    def subscribe(self, listener: StorageListener, owner: Any = None) -> Callable[[], None]:
        entry = (listener, owner)
        self._listeners.append(entry)

        def unsubscribe():
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def _notify(self, key: str, origin: Any) -> None:
        self._pending.append((key, origin))
        if self.auto_dispatch:
            self.dispatch_events()

    def dispatch_events(self) -> int:
        """Доставить накопленные события. Возвращает число доставок."""
        delivered = 0
        while self._pending:
            key, origin = self._pending.pop(0)
            for listener, owner in list(self._listeners):
                # писатель своё же событие не получает
                if origin is not None and owner is origin:
                    continue
                listener(key)
                delivered += 1
        return delivered


class MemoryStore(KeyValueStore):
    """Хранилище в памяти процесса. quota: лимит суммарной длины значений."""

    def __init__(self, quota: Optional[int] = None, auto_dispatch: bool = True):
        super().__init__(auto_dispatch=auto_dispatch)
        self.quota = quota
        self._data: Dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self._data.pop(key, None)
            return
        if self.quota is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self.quota:
                raise StorageWriteError(f"quota exceeded for key {key!r}")
        self._data[key] = value


class SqlKeyValueStore(KeyValueStore):
    """Хранилище в таблице client_storage (общий «девайс» для всех сотрудников)."""

    def __init__(self, session_factory, auto_dispatch: bool = True):
        super().__init__(auto_dispatch=auto_dispatch)
        self._session_factory = session_factory

    def _read(self, key: str) -> Optional[str]:
        db = self._session_factory()
        try:
            entry = db.get(ClientStorageEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def _write(self, key: str, value: Optional[str]) -> None:
        db = self._session_factory()
        try:
            entry = db.get(ClientStorageEntry, key)
            if value is None:
                if entry:
                    db.delete(entry)
            elif entry:
                entry.value = value
                entry.updated_at = datetime.utcnow()
            else:
                db.add(ClientStorageEntry(key=key, value=value))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageWriteError(str(e)) from e
        finally:
            db.close()


# ---- JSON-хелперы ----
def read_json_list(store: KeyValueStore, key: str) -> list:
    """Список из хранилища; битый JSON или не-список дают пустой список."""
    raw = store.get(key)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Broken JSON under storage key %s, starting empty", key)
        return []
    return data if isinstance(data, list) else []


def write_json(store: KeyValueStore, key: str, value: Any, origin: Any = None) -> bool:
    """Записать JSON. Ошибку записи только логируем: память уже обновлена."""
    try:
        store.set(key, json.dumps(value, ensure_ascii=False), origin=origin)
    except StorageWriteError as e:
        logger.warning("Storage write failed for %s: %s", key, e)
        return False
    return True


# общий экземпляр приложения (таблица client_storage)
store = SqlKeyValueStore(SessionLocal)


# Dependency для FastAPI
def get_store() -> KeyValueStore:
    return store
