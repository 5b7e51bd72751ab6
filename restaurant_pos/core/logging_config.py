import logging
import sys

from restaurant_pos.core.config import settings


LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s:%(lineno)d] - %(message)s'


def configure_logging(level: str | None = None) -> None:
    """
    Configura logging centralizado para la API.

    - INFO: cambios de estado exitosos (mesa creada, cuenta cerrada, menú reemplazado)
    - WARNING: operaciones rechazadas y reintentos
    - ERROR: fallos del almacenamiento
    """
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    # No duplicar handlers si create_app() se llama varias veces (tests)
    if any(getattr(h, "_restaurant_pos", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    handler._restaurant_pos = True
    root.addHandler(handler)
