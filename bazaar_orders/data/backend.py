# bazaar_orders/data/backend.py
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from bazaar_orders.data.database import Base, make_engine, make_session_factory
from bazaar_orders.repos.order_repo import SqlOrderStore
from bazaar_orders.repos.order_store import InMemoryOrderStore, OrderStore
from bazaar_orders.utils.logging import get_logger
from bazaar_orders.utils.settings import DATABASE_URL, ORDER_BACKEND

logger = get_logger(__name__)


class BackendMode(str, Enum):
    SQL = "sql"
    MEMORY = "memory"


class DataBackend:
    """
    Jawna zdolnosc persystencji wstrzykiwana do aplikacji.
    Komponenty wybieraja zachowanie po `mode`, a nie po stanie polaczenia.
    """

    def __init__(self, mode: BackendMode, engine=None):
        self.mode = BackendMode(mode)
        self.engine = engine
        self._session_factory = None
        self._memory_store: Optional[InMemoryOrderStore] = None

        if self.mode == BackendMode.SQL:
            if self.engine is None:
                raise ValueError("SQL backend requires an engine")
            self._session_factory = make_session_factory(self.engine)
        else:
            self._memory_store = InMemoryOrderStore()

    @classmethod
    def sql(cls, url: str = DATABASE_URL, **engine_kwargs) -> "DataBackend":
        return cls(BackendMode.SQL, engine=make_engine(url, **engine_kwargs))

    @classmethod
    def memory(cls) -> "DataBackend":
        return cls(BackendMode.MEMORY)

    @classmethod
    def from_settings(cls) -> "DataBackend":
        if BackendMode(ORDER_BACKEND) == BackendMode.MEMORY:
            return cls.memory()
        return cls.sql()

    def init_schema(self) -> None:
        if self.mode != BackendMode.SQL:
            return

        # rejestracja wszystkich modeli w Base.metadata
        import bazaar_orders.data.models  # noqa: F401

        logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def store(self) -> Iterator[OrderStore]:
        if self.mode == BackendMode.MEMORY:
            yield self._memory_store
            return

        db = self._session_factory()
        try:
            yield SqlOrderStore(db)
        finally:
            db.close()
