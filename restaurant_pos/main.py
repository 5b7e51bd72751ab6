from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restaurant_pos.core.config import settings
from restaurant_pos.core.database import SessionLocal, init_db
from restaurant_pos.core.errors import register_error_handlers
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.id_service import default_ids
from restaurant_pos.core.logging_config import configure_logging
from restaurant_pos.routes.feeds import router as feeds_router
from restaurant_pos.routes.health import router as health_router
from restaurant_pos.routes.menu import router as menu_router
from restaurant_pos.routes.sales import router as sales_router
from restaurant_pos.routes.tables import router as tables_router
from restaurant_pos.services.seed import seed_demo


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Restaurant POS API", version="0.1.0")

    # Servicios compartidos por todas las requests; los tests los reemplazan
    app.state.feeds = FeedHub()
    app.state.ids = default_ids
    app.state.session_factory = SessionLocal

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(menu_router, prefix="/menu", tags=["menu"])
    app.include_router(tables_router, prefix="/tables", tags=["tables"])
    app.include_router(sales_router, prefix="/sales", tags=["sales"])
    app.include_router(feeds_router, prefix="/feeds", tags=["feeds"])

    return app


app = create_app()

# Only seed in development
if settings.env == "dev":
    init_db()
    if settings.seed_menu:
        with SessionLocal() as db:
            seed_demo(db)
