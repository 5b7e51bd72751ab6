"""
Errores de dominio del POS.

Los servicios lanzan estas excepciones; la API las traduce a respuestas HTTP
con el motivo original en `detail`.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class PosError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(PosError):
    """Entrada inválida: nombre de mesa vacío, CSV inválido, precio faltante."""

    status_code = status.HTTP_400_BAD_REQUEST


class PreconditionFailed(PosError):
    """La operación no aplica al estado actual (p.ej. borrar una mesa ocupada)."""

    status_code = status.HTTP_409_CONFLICT


class NotFound(PosError):
    status_code = status.HTTP_404_NOT_FOUND


class TransactionConflict(PosError):
    """Otra escritura concurrente ganó durante el cierre de cuenta."""

    status_code = status.HTTP_409_CONFLICT


class StoreUnavailable(PosError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def pos_error_handler(request: Request, exc: PosError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Fallos del almacenamiento fuera de una escritura (lecturas, pool agotado)."""
    logger.error("store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=StoreUnavailable.status_code,
        content={"detail": str(exc), "error": StoreUnavailable.__name__},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PosError, pos_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
