# Визуалы карточки (перед/спина), загруженные вручную, максимум 2 на заказ
from typing import List

from olda.models.order import Order
from olda.services.client_storage import KeyValueStore, read_json_list, write_json

MAX_IMAGES = 2


def images_key(order_id: str) -> str:
    return f"olda-images-{order_id}"


class LocalImages:
    def __init__(self, store: KeyValueStore, order_id: str):
        self.store = store
        self.key = images_key(order_id)
        self.images: List[str] = read_json_list(store, self.key)

    def add(self, data_url: str) -> None:
        # третья картинка просто отбрасывается
        self.images = (self.images + [data_url])[:MAX_IMAGES]
        write_json(self.store, self.key, self.images, origin=self)


def display_images(order: Order, local: LocalImages) -> List[str]:
    """Картинки позиций с сервера важнее локальных."""
    server = [i.image_url for i in (order.items or []) if i.image_url][:MAX_IMAGES]
    return server if server else list(local.images)
