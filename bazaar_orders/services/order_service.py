# bazaar_orders/services/order_service.py
from contextlib import nullcontext
from decimal import Decimal
from typing import Callable, List, Optional

from bazaar_orders.domain import lifecycle
from bazaar_orders.domain.errors import (
    AuthorizationError,
    DuplicateOrderId,
    NotFoundError,
    StorageConflict,
    ValidationError,
)
from bazaar_orders.domain.models import Actor, Order, OrderItem, Rating
from bazaar_orders.domain.schemas import ItemIn, OrderCreate, PaymentUpdateIn, RatingIn, StatusUpdateIn
from bazaar_orders.domain.status import OrderStatus, Role, authorize, step_for
from bazaar_orders.repos.order_store import OrderStore
from bazaar_orders.services.lock_service import LockService
from bazaar_orders.services.material_client import MaterialClient
from bazaar_orders.services.notification_service import NotificationService
from bazaar_orders.utils.logging import get_logger
from bazaar_orders.utils.retry import conflict_retry
from bazaar_orders.utils.settings import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, ORDER_ID_MAX_ATTEMPTS

logger = get_logger(__name__)


class OrderService:
    """
    Use case'y domeny zamowien.
    commands (create, status, items, charges, payment, rating) - odczyt, silnik, zapis
    query (get, list) tylko odczyt, zawsze z prawdziwego magazynu
    """

    def __init__(
        self,
        store: OrderStore,
        catalog: MaterialClient,
        notifier: NotificationService,
        lock_service: Optional[LockService] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.notifier = notifier
        self.lock_service = lock_service

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, actor: Actor, order_id: str) -> Order:
        return self._load_owned(actor, order_id)

    def list_orders(
        self,
        actor: Actor,
        status: Optional[OrderStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        limit = self._clamp(limit)

        if authorize(actor.role, Role.VENDOR):
            return self.store.find_by_vendor(actor.user_id, status, limit)
        return self.store.find_by_supplier(actor.user_id, status, limit)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, actor: Actor, payload: OrderCreate) -> Order:
        """
        Use Case: Checkout vendora.

        1. Sprawdza role (tylko vendor)
        2. Robi snapshot pozycji z katalogu
        3. Buduje zamowienie (walidacja, sumy, krok "Order Placed")
        4. Zapisuje z unikalnym orderId (kolizja -> nowe id)
        5. Wysyla powiadomienie (async)
        """
        if not authorize(actor.role, Role.VENDOR):
            raise AuthorizationError("Access denied. Vendor role required.")

        items = self._snapshot_items(payload.items, payload.supplier_id)

        draft = lifecycle.create_order(
            vendor_id=actor.user_id,
            supplier_id=payload.supplier_id,
            items=items,
            delivery_address=payload.delivery_address,
            delivery_instructions=payload.delivery_instructions,
            delivery_charges=payload.delivery_charges,
            payment_method=payload.payment_method,
            vendor_notes=payload.vendor_notes,
        )

        created = self._save_with_unique_id(draft)

        logger.info(
            f"Order {created.order_id} created by vendor {created.vendor_id} "
            f"for supplier {created.supplier_id}, final amount {created.final_amount}"
        )

        self.notifier.notify(
            created.supplier_id,
            created.order_id,
            "created",
            f"New order worth {created.final_amount}",
        )
        return created

    def change_status(self, actor: Actor, order_id: str, payload: StatusUpdateIn) -> Order:
        updated = self._mutate(
            actor,
            order_id,
            lambda order: lifecycle.transition(
                order,
                payload.status,
                actor.role,
                reason=payload.reason,
                notes=payload.notes,
                estimated_delivery_time=payload.estimated_delivery_time,
            ),
        )

        logger.info(f"Order {order_id} moved to {updated.status.value} by {actor.role.value} {actor.user_id}")

        _, description = step_for(updated.status)
        recipient = updated.vendor_id if actor.user_id == updated.supplier_id else updated.supplier_id
        self.notifier.notify(recipient, updated.order_id, updated.status.value, description)
        return updated

    def replace_items(self, actor: Actor, order_id: str, items: List[ItemIn]) -> Order:
        def change(order: Order) -> Order:
            # sprawdz role i status przed odpytaniem katalogu
            if not authorize(actor.role, Role.VENDOR):
                raise AuthorizationError("Access denied. Vendor role required to change order items.")
            snapshots = self._snapshot_items(items, order.supplier_id)
            return lifecycle.replace_items(order, snapshots, actor.role)

        updated = self._mutate(actor, order_id, change)
        logger.info(f"Order {order_id} items replaced, new total {updated.total_amount}")
        return updated

    def set_delivery_charges(self, actor: Actor, order_id: str, delivery_charges: Decimal) -> Order:
        updated = self._mutate(
            actor,
            order_id,
            lambda order: lifecycle.set_delivery_charges(order, delivery_charges, actor.role),
        )
        logger.info(f"Order {order_id} delivery charges set to {updated.delivery_charges}")
        return updated

    def update_payment(self, actor: Actor, order_id: str, payload: PaymentUpdateIn) -> Order:
        updated = self._mutate(
            actor,
            order_id,
            lambda order: lifecycle.update_payment_status(
                order,
                payload.payment_status,
                actor.role,
                payment_method=payload.payment_method,
            ),
        )
        logger.info(f"Order {order_id} payment status {updated.payment_status.value}")
        return updated

    def rate_order(self, actor: Actor, order_id: str, payload: RatingIn) -> Order:
        rating = Rating(**payload.model_dump())
        updated = self._mutate(
            actor,
            order_id,
            lambda order: lifecycle.rate(order, rating, actor.role),
        )
        logger.info(f"Order {order_id} rated {rating.overall}/5 by vendor {actor.user_id}")
        return updated

    # =====================================================
    # HELPERS
    # =====================================================
    @conflict_retry()
    def _mutate(self, actor: Actor, order_id: str, change: Callable[[Order], Order]) -> Order:
        with self._locked(order_id):
            order = self._load_owned(actor, order_id)
            updated = change(order)
            return self.store.save(updated)

    def _locked(self, order_id: str):
        if self.lock_service is None:
            return nullcontext()
        return self.lock_service.hold(order_id)

    def _load_owned(self, actor: Actor, order_id: str) -> Order:
        order = self.store.find_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        owner = order.vendor_id if authorize(actor.role, Role.VENDOR) else order.supplier_id
        if owner != actor.user_id:
            raise AuthorizationError("Access denied to this order")
        return order

    def _snapshot_items(self, items: List[ItemIn], supplier_id: str) -> List[OrderItem]:
        snapshots = []
        for item in items:
            material = self.catalog.fetch_material(item.material_id)

            if material.supplier_id and material.supplier_id != supplier_id:
                raise ValidationError(
                    f"Material {item.material_id} is not offered by supplier {supplier_id}"
                )

            snapshots.append(
                OrderItem(
                    material_id=material.id,
                    material_name=material.name,
                    quantity=item.quantity,
                    unit_price=lifecycle.to_money(material.price),
                    unit=material.unit,
                )
            )
        return snapshots

    def _save_with_unique_id(self, draft: Order) -> Order:
        for attempt in range(1, ORDER_ID_MAX_ATTEMPTS + 1):
            if self.store.exists(draft.order_id):
                logger.warning(f"Order id collision on {draft.order_id} (attempt {attempt})")
                draft = draft.model_copy(update={"order_id": lifecycle.generate_order_id()})
                continue

            try:
                return self.store.save(draft)
            except DuplicateOrderId:
                logger.warning(f"Order id {draft.order_id} taken at save (attempt {attempt})")
                draft = draft.model_copy(update={"order_id": lifecycle.generate_order_id()})

        raise StorageConflict("Could not generate a unique order id")

    @staticmethod
    def _clamp(limit: Optional[int]) -> int:
        if limit is None or limit <= 0:
            return DEFAULT_PAGE_LIMIT
        return min(limit, MAX_PAGE_LIMIT)
