import os

# Antes de importar la app: sin seed ni archivo sqlite local
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_pos.core.database import get_db
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.id_service import SequenceGenerator
from restaurant_pos.main import app
from restaurant_pos.models import Base
from restaurant_pos.services import menu_service


MENU_CSV = """id;nombre;categoria;precio
1;Ensalada César con pollo;Ensaladas;5000
2;Casado de pollo;Platos Principales;6500
9;Mojito;Cócteles;7500
99;Producto Especial (Tablas);Especial;0"""


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ids():
    return SequenceGenerator()


@pytest.fixture
def feeds():
    return FeedHub()


@pytest.fixture
def menu(db):
    menu_service.import_menu_csv(db, MENU_CSV)
    return menu_service.list_menu(db)


@pytest.fixture
def client(session_factory, ids, feeds):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.ids = ids
    app.state.feeds = feeds
    app.state.session_factory = session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def client_with_menu(client, session_factory):
    with session_factory() as session:
        menu_service.import_menu_csv(session, MENU_CSV)
    return client
