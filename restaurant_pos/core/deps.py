from fastapi import HTTPException, Request, status

from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.id_service import IdGenerator


def get_feeds(request: Request) -> FeedHub:
    return request.app.state.feeds


def get_id_generator(request: Request) -> IdGenerator:
    return request.app.state.ids


def require_confirmation(confirm: bool = False) -> None:
    """Las acciones destructivas requieren confirmación explícita del usuario."""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Acción destructiva: se requiere confirm=true",
        )
