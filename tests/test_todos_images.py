import json
from decimal import Decimal

from olda.models.order import Order, OrderItem
from olda.services.order_images import MAX_IMAGES, LocalImages, display_images, images_key
from olda.services.todos import TodoList, todos_key


def test_add_trims_and_ignores_blank(store):
    todos = TodoList(store, "o1")
    todos.add("   ")
    todos.add("")
    todos.add("  Imprimer le dos  ")

    assert [t["text"] for t in todos.todos] == ["Imprimer le dos"]
    assert todos.todos[0]["done"] is False
    assert json.loads(store.get(todos_key("o1"))) == todos.todos


def test_toggle_and_delete(store):
    todos = TodoList(store, "o1")
    todos.add("Presser")
    todos.add("Appeler le client")
    first, second = [t["id"] for t in todos.todos]

    todos.toggle(first)
    assert todos.pending_count == 1
    todos.toggle(first)
    assert todos.pending_count == 2

    todos.delete(second)
    assert [t["id"] for t in TodoList(store, "o1").todos] == [first]


def test_lists_are_per_order(store):
    TodoList(store, "o1").add("A")
    TodoList(store, "o2").add("B")
    assert [t["text"] for t in TodoList(store, "o1").todos] == ["A"]
    assert [t["text"] for t in TodoList(store, "o2").todos] == ["B"]


def test_unknown_todo_id_changes_nothing(store):
    todos = TodoList(store, "o1")
    todos.add("A")
    todos.toggle("missing")
    todos.delete("missing")
    assert todos.pending_count == 1


def test_local_images_keep_first_two(store):
    images = LocalImages(store, "o1")
    for name in ("front", "back", "extra"):
        images.add(f"data:image/png;base64,{name}")

    assert len(images.images) == MAX_IMAGES
    assert json.loads(store.get(images_key("o1"))) == [
        "data:image/png;base64,front",
        "data:image/png;base64,back",
    ]


def test_server_images_take_priority(store):
    local = LocalImages(store, "o1")
    local.add("data:image/png;base64,local")

    order = Order(order_number="T-1", total=Decimal("0"))
    order.items = [
        OrderItem(name="A", quantity=1, price=Decimal("1"), image_url="https://cdn/a.png"),
        OrderItem(name="B", quantity=1, price=Decimal("1")),
        OrderItem(name="C", quantity=1, price=Decimal("1"), image_url="https://cdn/c.png"),
        OrderItem(name="D", quantity=1, price=Decimal("1"), image_url="https://cdn/d.png"),
    ]
    assert display_images(order, local) == ["https://cdn/a.png", "https://cdn/c.png"]

    order.items = [OrderItem(name="A", quantity=1, price=Decimal("1"))]
    assert display_images(order, local) == ["data:image/png;base64,local"]
