# bazaar_orders/repos/order_store.py
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional, Set

from bazaar_orders.domain.errors import DuplicateOrderId, StorageConflict
from bazaar_orders.domain.models import Order
from bazaar_orders.domain.status import OrderStatus


class OrderStore(ABC):
    """
    Kontrakt persystencji zamowien.

    save() to czysty zapis: bez logiki biznesowej, wszystko albo nic,
    optimistic locking po polu version (0 = insert, >0 = compare-and-set).
    Zwraca zapisany rekord z podbita wersja.
    """

    @abstractmethod
    def save(self, order: Order) -> Order:
        ...

    @abstractmethod
    def find_by_id(self, order_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    def exists(self, order_id: str) -> bool:
        ...

    @abstractmethod
    def find_by_vendor(
        self,
        vendor_id: str,
        status: Optional[OrderStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        ...

    @abstractmethod
    def find_by_supplier(
        self,
        supplier_id: str,
        status: Optional[OrderStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        ...

    @abstractmethod
    def list_recent(self, limit: int, status: Optional[OrderStatus] = None) -> List[Order]:
        ...


class InMemoryOrderStore(OrderStore):
    """Mapa order_id -> rekord z indeksami po vendorze i supplierze (testy, dev)."""

    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._by_vendor: Dict[str, Set[str]] = defaultdict(set)
        self._by_supplier: Dict[str, Set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    def save(self, order: Order) -> Order:
        with self._lock:
            current = self._orders.get(order.order_id)

            if order.version == 0:
                if current is not None:
                    raise DuplicateOrderId(f"Order id {order.order_id} already exists")
            elif current is None or current.version != order.version:
                raise StorageConflict(
                    f"Order {order.order_id} was modified by another operation"
                )

            stored = order.model_copy(deep=True, update={"version": order.version + 1})
            self._orders[stored.order_id] = stored
            self._by_vendor[stored.vendor_id].add(stored.order_id)
            self._by_supplier[stored.supplier_id].add(stored.order_id)

            return stored.model_copy(deep=True)

    def find_by_id(self, order_id: str) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return order.model_copy(deep=True) if order else None

    def exists(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._orders

    def find_by_vendor(self, vendor_id, status=None, limit=None) -> List[Order]:
        with self._lock:
            return self._select(self._by_vendor.get(vendor_id, ()), status, limit)

    def find_by_supplier(self, supplier_id, status=None, limit=None) -> List[Order]:
        with self._lock:
            return self._select(self._by_supplier.get(supplier_id, ()), status, limit)

    def list_recent(self, limit, status=None) -> List[Order]:
        with self._lock:
            return self._select(self._orders.keys(), status, limit)

    def _select(self, order_ids, status, limit) -> List[Order]:
        orders = [self._orders[oid] for oid in order_ids]
        if status is not None:
            orders = [o for o in orders if o.status == OrderStatus(status)]

        orders.sort(key=lambda o: o.created_at, reverse=True)
        if limit is not None:
            orders = orders[:limit]

        return [o.model_copy(deep=True) for o in orders]
