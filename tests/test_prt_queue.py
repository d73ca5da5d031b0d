import json
from datetime import datetime, timedelta, timezone

import pytest

from olda.services.client_storage import MemoryStore
from olda.services.prt_requests import CATEGORIES, STORAGE_KEY, PRTQueue
from olda.utils.enums import UserRole
from olda.utils.permissions import Identity

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)

ALEX = Identity(name="Alex", role=UserRole.STAFF.value)
SAM = Identity(name="Sam", role=UserRole.STAFF.value)
LOIC = Identity(name="Loïc", role=UserRole.PRT_RECIPIENT.value)


def _queue(store, identity, now=NOW):
    return PRTQueue(store, identity, clock=lambda: now)


def _stored(store):
    return json.loads(store.get(STORAGE_KEY))


def test_submit_puts_new_entry_at_head(store):
    q = _queue(store, ALEX)
    q.submit(category="Polo", size="M", quantity=1, color="Blanc")
    req = q.submit(category="T-shirt", size="L", quantity=3, color="Noir")

    head = q.requests[0]
    assert head is req
    assert head.status == "new"
    assert head.quantity == 3
    assert head.category == "T-shirt"
    assert head.submitter == "Alex"
    assert head.created_at == NOW.isoformat()
    assert [r["category"] for r in _stored(store)] == ["T-shirt", "Polo"]


def test_submit_stores_original_json_shape(store):
    q = _queue(store, ALEX)
    q.submit(category="Sweat", size=" XL ", quantity=2, color=" Rouge ")

    raw = _stored(store)[0]
    assert raw["id"].startswith("prt")
    assert raw["from"] == "Alex"
    assert raw["createdAt"] == NOW.isoformat()
    assert raw["size"] == "XL"
    assert raw["color"] == "Rouge"


@pytest.mark.parametrize("size,color", [("", "Noir"), ("L", ""), ("   ", "Noir"), ("L", "  ")])
def test_blank_size_or_color_is_ignored(store, size, color):
    q = _queue(store, ALEX)
    assert q.submit(category="T-shirt", size=size, quantity=1, color=color) is None
    assert q.requests == []
    assert store.get(STORAGE_KEY) is None
    assert not q.flash_visible()


def test_submit_resets_form_and_flashes_for_a_short_while(store):
    q = _queue(store, ALEX)
    q.submit(category="Sac", size="Unique", quantity=4, color="Beige")

    assert q.form.category == CATEGORIES[0]
    assert q.form.size == ""
    assert q.form.quantity == 1
    assert q.form.color == ""
    assert q.flash_visible(NOW + timedelta(seconds=2))
    assert not q.flash_visible(NOW + timedelta(seconds=2.3))


def test_quantity_is_clamped_and_unknown_category_falls_back(store):
    q = _queue(store, ALEX)
    req = q.submit(category="Chaussette", size="42", quantity=0, color="Gris")
    assert req.quantity == 1
    assert req.category == CATEGORIES[0]


def test_anonymous_user_cannot_submit(store):
    q = _queue(store, None)
    assert q.submit(category="Polo", size="M", quantity=1, color="Bleu") is None
    assert q.requests == []


def test_advance_is_monotonic(store):
    req = _queue(store, ALEX).submit(category="Polo", size="M", quantity=1, color="Bleu")
    q = _queue(store, LOIC)

    assert q.advance(req.id) is True
    assert q.requests[0].status == "seen"
    assert q.advance(req.id) is True
    assert q.requests[0].status == "done"

    snapshot = store.get(STORAGE_KEY)
    assert q.advance(req.id) is False
    assert q.requests[0].status == "done"
    assert store.get(STORAGE_KEY) == snapshot


def test_mark_done_skips_seen(store):
    req = _queue(store, ALEX).submit(category="Polo", size="M", quantity=1, color="Bleu")
    q = _queue(store, LOIC)
    assert q.mark_done(req.id) is True
    assert q.mark_seen(req.id) is False
    assert q.requests[0].status == "done"


def test_staff_cannot_advance(store):
    q = _queue(store, ALEX)
    req = q.submit(category="Polo", size="M", quantity=1, color="Bleu")
    assert q.advance(req.id) is False
    assert q.mark_done(req.id) is False
    assert _stored(store)[0]["status"] == "new"


def test_clear_done_keeps_others_in_order(store):
    staff = _queue(store, ALEX)
    ids = [staff.submit(category="Polo", size=str(n), quantity=1, color="Bleu").id for n in range(5)]
    # в списке новые сверху: ids[4], ids[3], ..., ids[0]
    recipient = _queue(store, LOIC)
    recipient.mark_done(ids[3])
    recipient.mark_done(ids[0])
    recipient.mark_seen(ids[2])

    assert recipient.clear_done() == 2
    assert [r.id for r in recipient.requests] == [ids[4], ids[2], ids[1]]
    assert [r["id"] for r in _stored(store)] == [ids[4], ids[2], ids[1]]
    assert recipient.pending_count == 3


def test_clear_done_requires_recipient(store):
    staff = _queue(store, ALEX)
    req = staff.submit(category="Polo", size="M", quantity=1, color="Bleu")
    _queue(store, LOIC).mark_done(req.id)

    staff.load()
    assert staff.clear_done() == 0
    assert len(_stored(store)) == 1


def test_owner_can_delete_own_request(store):
    q = _queue(store, ALEX)
    req = q.submit(category="Polo", size="M", quantity=1, color="Bleu")
    assert q.remove(req.id) is True
    assert _stored(store) == []


def test_non_owner_staff_cannot_delete(store):
    req = _queue(store, ALEX).submit(category="Polo", size="M", quantity=1, color="Bleu")
    other = _queue(store, SAM)

    before = store.get(STORAGE_KEY)
    assert other.remove(req.id) is False
    assert store.get(STORAGE_KEY) == before
    assert [r.id for r in other.requests] == [req.id]


def test_owner_match_is_exact(store):
    req = _queue(store, ALEX).submit(category="Polo", size="M", quantity=1, color="Bleu")
    lowercase_alex = _queue(store, Identity(name="alex", role=UserRole.STAFF.value))
    assert lowercase_alex.remove(req.id) is False


def test_recipient_can_delete_any_request(store):
    req = _queue(store, ALEX).submit(category="Polo", size="M", quantity=1, color="Bleu")
    assert _queue(store, LOIC).remove(req.id) is True
    assert _stored(store) == []


def test_storage_event_reloads_other_views(store):
    tab_a = _queue(store, ALEX)
    tab_b = _queue(store, LOIC)
    req = tab_a.submit(category="Polo", size="M", quantity=1, color="Bleu")
    assert [r.id for r in tab_b.requests] == [req.id]


def test_closed_view_stops_listening(store):
    tab_a = _queue(store, ALEX)
    tab_b = _queue(store, LOIC)
    tab_b.close()
    tab_a.submit(category="Polo", size="M", quantity=1, color="Bleu")
    assert tab_b.requests == []


def test_stale_views_lose_updates():
    store = MemoryStore(auto_dispatch=False)
    seed = _queue(store, ALEX)
    original = seed.submit(category="Polo", size="M", quantity=1, color="Bleu")
    store.dispatch_events()

    tab_a = _queue(store, ALEX)
    tab_b = _queue(store, SAM)
    assert len(tab_a.requests) == len(tab_b.requests) == 1

    x = tab_a.submit(category="Sac", size="U", quantity=1, color="Noir")
    # событие ещё не доставлено: у вкладки B устаревшая копия
    y = tab_b.submit(category="Sweat", size="S", quantity=2, color="Gris")

    assert [r["id"] for r in _stored(store)] == [y.id, original.id]
    assert x.id not in [r["id"] for r in _stored(store)]


def test_write_failure_keeps_memory_state():
    store = MemoryStore(quota=10)
    q = _queue(store, ALEX)
    req = q.submit(category="Polo", size="M", quantity=1, color="Bleu")

    assert req is not None
    assert [r.id for r in q.requests] == [req.id]
    assert store.get(STORAGE_KEY) is None


def test_broken_storage_value_loads_empty(store):
    store.set(STORAGE_KEY, "{not json")
    assert _queue(store, ALEX).requests == []
