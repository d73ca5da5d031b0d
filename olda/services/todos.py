# Todo карточки заказа: отдельный список на каждый заказ, только локально
import uuid
from typing import List

from olda.services.client_storage import KeyValueStore, read_json_list, write_json


def todos_key(order_id: str) -> str:
    return f"olda-todos-{order_id}"


class TodoList:
    def __init__(self, store: KeyValueStore, order_id: str):
        self.store = store
        self.order_id = order_id
        self.key = todos_key(order_id)
        self.todos: List[dict] = read_json_list(store, self.key)

    def _save(self, updated: List[dict]) -> None:
        self.todos = updated
        write_json(self.store, self.key, updated, origin=self)

    def add(self, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return
        self._save(self.todos + [{"id": str(uuid.uuid4()), "text": text, "done": False}])

    def toggle(self, todo_id: str) -> None:
        self._save([
            {**t, "done": not t.get("done")} if t.get("id") == todo_id else t
            for t in self.todos
        ])

    def delete(self, todo_id: str) -> None:
        self._save([t for t in self.todos if t.get("id") != todo_id])

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self.todos if not t.get("done"))
