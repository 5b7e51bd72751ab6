"""
Feeds de cambios en vivo (menu, tables, sales).

Cada suscriptor registra un callback y recibe el snapshot completo y ordenado
de la colección después de cada escritura confirmada. No se envían diffs: los
consumidores recalculan grupos, totales y estados con cada snapshot.
"""
import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

TOPICS = ("menu", "tables", "sales")

Snapshot = List[Dict[str, Any]]
Callback = Callable[[Snapshot], None]


class FeedHub:
    def __init__(self):
        self._subscribers: Dict[str, List[Callback]] = {topic: [] for topic in TOPICS}
        self._lock = threading.Lock()

    def _check_topic(self, topic: str) -> None:
        if topic not in self._subscribers:
            raise KeyError(f"Feed desconocido: {topic}")

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        """Registra un callback y devuelve la función para cancelar la suscripción."""
        self._check_topic(topic)
        with self._lock:
            self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[topic]:
                    self._subscribers[topic].remove(callback)

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        self._check_topic(topic)
        with self._lock:
            return len(self._subscribers[topic])

    def publish(self, topic: str, snapshot: Snapshot) -> None:
        self._check_topic(topic)
        with self._lock:
            callbacks = list(self._subscribers[topic])
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                # Un suscriptor roto no debe impedir la entrega a los demás
                logger.exception("feed %s: subscriber failed", topic)
