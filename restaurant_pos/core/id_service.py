"""
Generación de identificadores.

Mesas, ventas e instancias de items usan un generador inyectable para que los
tests puedan producir ids deterministas.
"""
import itertools
import threading
from uuid import uuid4


class IdGenerator:
    def new_id(self) -> str:
        raise NotImplementedError


class UuidGenerator(IdGenerator):
    def new_id(self) -> str:
        return uuid4().hex


class SequenceGenerator(IdGenerator):
    """
    Ids monotónicos con formato: {PREFIX}-{SEQ:06d}

    Ejemplo: 'id-000001', 'id-000002', ...
    """

    def __init__(self, prefix: str = "id", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            seq = next(self._counter)
        return f"{self.prefix}-{str(seq).zfill(6)}"


default_ids = UuidGenerator()
