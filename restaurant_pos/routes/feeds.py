import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from restaurant_pos.core.feeds import TOPICS
from restaurant_pos.services import menu_service, sales_service, table_service

logger = logging.getLogger(__name__)

router = APIRouter()

SNAPSHOTS = {
    "menu": menu_service.menu_snapshot,
    "tables": table_service.tables_snapshot,
    "sales": sales_service.sales_snapshot,
}


def _load_snapshot(session_factory, topic: str):
    # Sesión corta: la conexión vuelve al pool antes de quedar escuchando
    with session_factory() as db:
        return SNAPSHOTS[topic](db)


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        snapshot = await queue.get()
        await websocket.send_json({"snapshot": snapshot})


async def _drain(websocket: WebSocket) -> None:
    while True:
        await websocket.receive_text()


@router.websocket("/{topic}")
async def feed(websocket: WebSocket, topic: str):
    """
    Envía el snapshot actual del feed al conectar y luego cada snapshot nuevo.
    Los mensajes del cliente se ignoran; la suscripción se cancela al desconectar.
    """
    if topic not in TOPICS:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    logger.info("feed %s connected: %s", topic, websocket.client)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    hub = websocket.app.state.feeds
    # Las escrituras publican desde el threadpool de FastAPI
    unsubscribe = hub.subscribe(topic, lambda snapshot: loop.call_soon_threadsafe(queue.put_nowait, snapshot))

    tasks = []
    try:
        try:
            initial = await run_in_threadpool(_load_snapshot, websocket.app.state.session_factory, topic)
        except SQLAlchemyError:
            logger.exception("feed %s: initial snapshot failed", topic)
            await websocket.close(code=1011)
            return
        await websocket.send_json({"snapshot": initial})

        tasks = [asyncio.create_task(_drain(websocket)), asyncio.create_task(_pump(websocket, queue))]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if isinstance(error, WebSocketDisconnect):
                logger.info("feed %s disconnected", topic)
            elif error is not None:
                logger.error("feed %s closed after error: %r", topic, error)
    except WebSocketDisconnect:
        logger.info("feed %s disconnected", topic)
    finally:
        unsubscribe()
        for task in tasks:
            task.cancel()
