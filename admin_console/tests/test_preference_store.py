import logging

import pytest

from admin_console.core.menu_registry import ADMIN_ROLES, default_items
from admin_console.navigation.store import PreferenceStore
from admin_console.tests.nav_helpers import ids, make_item


def _store(*items, **kwargs) -> PreferenceStore:
    return PreferenceStore(items, **kwargs)


def _recorder(store: PreferenceStore) -> list:
    calls: list = []
    store.subscribe(calls.append)
    return calls


def test_initial_items_are_sorted_and_deduplicated() -> None:
    store = _store(make_item("b", 2), make_item("a", 1), make_item("b", 0))

    assert ids(store.items) == ["a", "b"]
    assert store.get("b").order == 2


def test_add_is_idempotent_and_sorts() -> None:
    store = _store(make_item("a", 0), make_item("c", 2))
    calls = _recorder(store)

    assert store.add(make_item("b", 1)) is True
    assert store.add(make_item("b", 7)) is False
    assert store.add({"id": "d", "name": "D", "order": -1}) is True

    assert ids(store.items) == ["d", "a", "b", "c"]
    assert len(calls) == 2


def test_remove_and_missing_ids_are_noops() -> None:
    store = _store(make_item("a", 0), make_item("b", 1))
    calls = _recorder(store)

    assert store.remove("a") is True
    assert store.remove("zzz") is False
    assert store.update("zzz", name="Nope") is False
    assert store.toggle_visibility("zzz") is False

    assert ids(store.items) == ["b"]
    assert len(calls) == 1


def test_update_merges_fields_and_resorts() -> None:
    store = _store(make_item("a", 0), make_item("b", 1))

    store.update("a", {"name": "Renamed", "iconRef": "Zap"}, order=5)

    item = store.get("a")
    assert item.name == "Renamed"
    assert item.icon_ref == "Zap"
    assert item.path == "/dashboard/a"
    assert ids(store.items) == ["b", "a"]


def test_update_refuses_id_change_and_unknown_fields() -> None:
    store = _store(make_item("a", 0))

    with pytest.raises(ValueError):
        store.update("a", id="b")
    with pytest.raises(ValueError):
        store.update("a", colour="red")
    assert ids(store.items) == ["a"]


def test_toggle_visibility_twice_is_identity() -> None:
    store = _store(make_item("a", 0, is_visible=True))
    original = store.items

    store.toggle_visibility("a")
    assert store.get("a").is_visible is False
    store.toggle_visibility("a")

    assert store.items == original


def test_reorder_assigns_indexes_then_trailing_orders() -> None:
    store = _store(make_item("a", 0), make_item("b", 1), make_item("c", 5))

    store.reorder(["b", "a"])

    assert [(item.id, item.order) for item in store.items] == [("b", 0), ("a", 1), ("c", 2)]


def test_reorder_ignores_unknown_and_repeated_ids() -> None:
    store = _store(make_item("a", 0), make_item("b", 1), make_item("c", 2))

    store.reorder(["c", "ghost", "c", "a"])

    assert [(item.id, item.order) for item in store.items] == [("c", 0), ("a", 1), ("b", 2)]


def test_reorder_to_current_order_notifies_nobody() -> None:
    store = _store(make_item("a", 0), make_item("b", 1), make_item("c", 5))
    calls = _recorder(store)
    before = store.items

    assert store.reorder(["a", "b", "c"]) is False
    assert store.reorder(["a"]) is False

    assert store.items == before
    assert calls == []


def test_reset_to_default_filters_by_roles() -> None:
    store = _store(make_item("custom", 0), roles=["ROLE_USER"])

    store.reset_to_default()

    assert ids(store.items) == ["dashboard", "products", "chat", "profile", "analytics"]

    admin_store = _store(roles=ADMIN_ROLES)
    admin_store.reset_to_default()
    assert ids(admin_store.items) == ids(default_items())


def test_observers_receive_full_snapshot_and_can_unsubscribe() -> None:
    store = _store(make_item("a", 0))
    received: list = []
    unsubscribe = store.subscribe(received.append)

    store.add(make_item("b", 1))
    unsubscribe()
    store.remove("a")

    assert len(received) == 1
    assert ids(received[0]) == ["a", "b"]


def test_failing_observer_does_not_block_others(caplog) -> None:
    store = _store(make_item("a", 0))
    received: list = []

    def broken(_items) -> None:
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(received.append)

    with caplog.at_level(logging.ERROR):
        store.toggle_visibility("a")

    assert len(received) == 1
    assert "Observateur" in caplog.text


def test_visible_items_apply_roles_and_preference() -> None:
    store = _store(
        make_item("a", 0),
        make_item("b", 1, is_visible=False),
        make_item("c", 2, required_roles=["ADMIN"]),
        roles=["ROLE_USER"],
    )

    assert ids(store.visible_items()) == ["a"]


def test_rebase_replays_journaled_mutations_once() -> None:
    store = _store(make_item("a", 0), make_item("b", 1))
    calls = _recorder(store)

    store.start_journal()
    store.toggle_visibility("a")
    store.add(make_item("z", 9))
    assert ids(store.journal_base) == ["a", "b"]

    store.rebase([make_item("b", 0), make_item("a", 1), make_item("c", 2)])

    assert ids(store.items) == ["b", "a", "c", "z"]
    assert store.get("a").is_visible is False
    assert not store.journaling
    assert len(calls) == 3


def test_rejected_mutation_is_not_journaled() -> None:
    store = _store(make_item("a", 0), make_item("b", 1))
    store.start_journal()

    with pytest.raises(ValueError):
        store.update("a", order="not-an-int")
    store.toggle_visibility("b")

    store.rebase([make_item("a", 4), make_item("b", 1)])

    assert [(item.id, item.order) for item in store.items] == [("b", 1), ("a", 4)]
    assert store.get("b").is_visible is False
