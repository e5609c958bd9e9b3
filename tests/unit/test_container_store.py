"""Unit tests for the container store."""

from unittest.mock import MagicMock

from dbdock.managers.container_store import ContainerStore, remove, upsert
from dbdock.models.containers import ContainerStatus


def test_upsert_appends_new(make_container):
    first = make_container(id="a")
    second = make_container(id="b")

    assert upsert((first,), second) == (first, second)


def test_upsert_replaces_by_id_in_place(make_container):
    first = make_container(id="a")
    second = make_container(id="b")
    updated = first.model_copy(update={"status": ContainerStatus.STOPPED})

    assert upsert((first, second), updated) == (updated, second)


def test_remove_filters_by_id(make_container):
    first = make_container(id="a")
    second = make_container(id="b")

    assert remove((first, second), "a") == (second,)
    assert remove((first, second), "missing") == (first, second)


def test_store_notifies_listeners(make_container):
    store = ContainerStore()
    listener = MagicMock()
    store.subscribe(listener)
    container = make_container(id="a")

    store.upsert(container)

    listener.assert_called_once_with((container,))
    assert store.revision == 1
    assert store.get("a") is container


def test_unsubscribe(make_container):
    store = ContainerStore()
    listener = MagicMock()
    unsubscribe = store.subscribe(listener)

    unsubscribe()
    store.replace_all([make_container()])

    listener.assert_not_called()


def test_failing_listener_does_not_block_others(make_container):
    store = ContainerStore()
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    store.subscribe(broken)
    store.subscribe(healthy)

    store.replace_all([make_container()])

    healthy.assert_called_once()
    assert len(store) == 1
