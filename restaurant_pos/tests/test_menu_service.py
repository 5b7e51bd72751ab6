from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from restaurant_pos.core.errors import StoreUnavailable, ValidationError
from restaurant_pos.services import menu_service


def test_parse_menu_csv_spanish_header():
    items = menu_service.parse_menu_csv(
        "id;nombre;categoria;precio\n1;Ensalada César con pollo;Ensaladas;5000\n99;Especial;Especial;0"
    )
    assert [(i.id, i.name, i.category, i.price) for i in items] == [
        ("1", "Ensalada César con pollo", "Ensaladas", Decimal("5000")),
        ("99", "Especial", "Especial", Decimal("0")),
    ]


def test_parse_menu_csv_english_header_and_whitespace():
    items = menu_service.parse_menu_csv("id;name;category;price\n7; Mojito ; Cócteles ;7500.5\n")
    assert items[0].name == "Mojito"
    assert items[0].category == "Cócteles"
    assert items[0].price == Decimal("7500.5")


def test_parse_menu_csv_drops_rows_without_id_and_zeroes_bad_prices():
    items = menu_service.parse_menu_csv(
        "id;name;category;price\n;Sin id;X;100\n5;Pan;Panes;abc\n6;Agua;Bebidas;-3\n7;Café"
    )
    assert [(i.id, i.price) for i in items] == [
        ("5", Decimal("0")),
        ("6", Decimal("0")),
        ("7", Decimal("0")),
    ]
    assert items[2].category == ""


@pytest.mark.parametrize("text", ["", "   ", "id;name;category;price", "id;name;category;price\n;x;y;1"])
def test_parse_menu_csv_rejects_empty(text):
    with pytest.raises(ValidationError):
        menu_service.parse_menu_csv(text)


def test_list_menu_orders_by_numeric_id(db):
    menu_service.import_menu_csv(db, "id;name;category;price\n10;C;X;1\n2;B;Y;1\n1;A;X;1\nespecial;Z;Y;0")
    assert [i.id for i in menu_service.list_menu(db)] == ["1", "2", "10", "especial"]
    assert menu_service.list_categories(db) == ["X", "Y"]
    assert [i.id for i in menu_service.list_menu(db, category="Y")] == ["2", "especial"]
    assert [i.id for i in menu_service.list_menu(db, search="b")] == ["2"]
    assert [i.id for i in menu_service.search_menu(db, "  B ")] == ["2"]


def test_import_replaces_whole_menu(db, menu):
    assert len(menu) == 4
    menu_service.import_menu_csv(db, "id;name;category;price\n50;Solo;Uno;100")
    assert [i.id for i in menu_service.list_menu(db)] == ["50"]


def test_failed_replace_keeps_previous_menu(db, menu, monkeypatch):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(StoreUnavailable):
        menu_service.import_menu_csv(db, "id;name;category;price\n50;Solo;Uno;100")
    monkeypatch.undo()

    assert [i.id for i in menu_service.list_menu(db)] == ["1", "2", "9", "99"]


def test_export_menu_csv(db, menu):
    text = menu_service.export_menu_csv(db)
    lines = text.split("\n")
    assert lines[0] == "id;name;category;price"
    assert lines[1] == "1;Ensalada César con pollo;Ensaladas;5000"
    assert lines[-1] == "99;Producto Especial (Tablas);Especial;0"
    # El export se puede volver a importar
    assert len(menu_service.parse_menu_csv(text)) == 4


def test_export_menu_csv_with_separator_in_text(db):
    menu_service.import_menu_csv(db, 'id;name;category;price\n1;"Café; doble";Bebidas;1000\n2;Té;"Calientes; frías";800')
    text = menu_service.export_menu_csv(db)
    assert text.split("\n")[1] == '1;"Café; doble";Bebidas;1000'

    items = menu_service.parse_menu_csv(text)
    assert [(i.id, i.name, i.category, i.price) for i in items] == [
        ("1", "Café; doble", "Bebidas", Decimal("1000")),
        ("2", "Té", "Calientes; frías", Decimal("800")),
    ]


def test_seed_menu_only_when_empty(db, menu):
    menu_service.seed_menu(db)
    assert len(menu_service.list_menu(db)) == 4
