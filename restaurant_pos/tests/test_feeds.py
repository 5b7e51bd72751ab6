import pytest

from restaurant_pos.core.errors import ValidationError
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.services import menu_service, table_service


def test_subscribe_and_unsubscribe():
    hub = FeedHub()
    received = []
    unsubscribe = hub.subscribe("tables", received.append)
    assert hub.subscriber_count("tables") == 1

    hub.publish("tables", [{"id": "a"}])
    unsubscribe()
    hub.publish("tables", [{"id": "b"}])

    assert received == [[{"id": "a"}]]
    assert hub.subscriber_count("tables") == 0
    # Cancelar dos veces no falla
    unsubscribe()


def test_unknown_topic():
    hub = FeedHub()
    with pytest.raises(KeyError):
        hub.subscribe("inventory", lambda snapshot: None)


def test_broken_subscriber_does_not_block_others():
    hub = FeedHub()
    received = []

    def broken(snapshot):
        raise RuntimeError("boom")

    hub.subscribe("sales", broken)
    hub.subscribe("sales", received.append)
    hub.publish("sales", [])
    assert received == [[]]


def test_services_publish_full_snapshots(db, menu, ids, feeds):
    tables_feed, sales_feed, menu_feed = [], [], []
    feeds.subscribe("tables", tables_feed.append)
    feeds.subscribe("sales", sales_feed.append)
    feeds.subscribe("menu", menu_feed.append)

    table = table_service.create_table(db, "Mesa 1", ids=ids, feeds=feeds)
    table_service.add_item(db, table.id, "1", ids=ids, feeds=feeds)
    table_service.close_order(db, table.id, ids=ids, feeds=feeds)
    menu_service.import_menu_csv(db, "id;name;category;price\n1;A;X;100", feeds=feeds)

    assert [snap[0]["status"] for snap in tables_feed] == ["free", "occupied", "free"]
    assert tables_feed[1][0]["items"][0]["menu_item_id"] == "1"
    assert len(sales_feed) == 1
    assert sales_feed[0][0]["total"] == 5000.0
    assert menu_feed == [[{
        "id": "1",
        "name": "A",
        "category": "X",
        "price": 100.0,
        "created_at": menu_feed[0][0]["created_at"],
    }]]


def test_rejected_operations_do_not_publish(db, menu, ids, feeds):
    table = table_service.create_table(db, "Mesa 1", ids=ids)
    received = []
    feeds.subscribe("tables", received.append)

    table_service.remove_item(db, table.id, "missing", feeds=feeds)
    with pytest.raises(ValidationError):
        table_service.add_item(db, table.id, "99", ids=ids, feeds=feeds)
    assert received == []
