# bazaar_orders/repos/order_repo.py
from datetime import datetime, timezone
from functools import wraps
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, selectinload

from bazaar_orders.data.models.order import OrderModel
from bazaar_orders.data.models.order_item import OrderItemModel
from bazaar_orders.data.models.tracking_step import TrackingStepModel
from bazaar_orders.domain.errors import DuplicateOrderId, StorageConflict, StorageUnavailable
from bazaar_orders.domain.models import Order, OrderItem, Rating, TrackingStep
from bazaar_orders.domain.status import OrderStatus
from bazaar_orders.repos.order_store import OrderStore
from bazaar_orders.utils.logging import get_logger

logger = get_logger(__name__)

_SCALAR_FIELDS = (
    "vendor_id",
    "supplier_id",
    "total_amount",
    "delivery_charges",
    "final_amount",
    "delivery_address",
    "delivery_instructions",
    "estimated_delivery_time",
    "actual_delivery_time",
    "vendor_notes",
    "supplier_notes",
    "cancellation_reason",
    "created_at",
    "updated_at",
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite zwraca naive datetime
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _unavailable_on_db_error(fn):
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Database unavailable in {fn.__name__}: {e}")
            raise StorageUnavailable("Database not available") from e
        except DBAPIError as e:
            self.db.rollback()
            if e.connection_invalidated:
                logger.error(f"Database connection lost in {fn.__name__}: {e}")
                raise StorageUnavailable("Database not available") from e
            raise

    return wrapper


class SqlOrderStore(OrderStore):
    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # COMMANDS
    # =====================================================
    @_unavailable_on_db_error
    def save(self, order: Order) -> Order:
        if order.version == 0:
            model = self._insert(order)
        else:
            model = self._update(order)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if order.version == 0:
                raise DuplicateOrderId(f"Order id {order.order_id} already exists") from e
            raise StorageConflict(f"Order {order.order_id} violates a storage constraint") from e

        logger.info(f"Saved order {order.order_id} version {model.version}")
        return self._to_domain(model)

    def _insert(self, order: Order) -> OrderModel:
        model = OrderModel(order_id=order.order_id, version=1)
        self._apply_scalars(model, order)
        model.items = self._item_rows(order)
        model.tracking_steps = [
            TrackingStepModel(
                position=pos,
                step=s.step,
                time=s.time,
                completed=s.completed,
                description=s.description,
            )
            for pos, s in enumerate(order.tracking_steps)
        ]
        self.db.add(model)
        return model

    def _update(self, order: Order) -> OrderModel:
        # Optimistic locking: UPDATE ... SET version = v+1 WHERE order_id = x AND version = v
        result = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.order_id == order.order_id,
                OrderModel.version == order.version,
            )
            .values(version=order.version + 1)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.db.rollback()
            raise StorageConflict(
                f"Order {order.order_id} was modified by another operation"
            )

        model = self.db.execute(
            select(OrderModel)
            .where(OrderModel.order_id == order.order_id)
            .options(selectinload(OrderModel.items), selectinload(OrderModel.tracking_steps))
            .execution_options(populate_existing=True)
        ).scalar_one()

        self._apply_scalars(model, order)
        model.items = self._item_rows(order)
        self._sync_tracking_steps(model, order)
        return model

    def _apply_scalars(self, model: OrderModel, order: Order) -> None:
        for field in _SCALAR_FIELDS:
            setattr(model, field, getattr(order, field))

        model.status = order.status.value
        model.payment_status = order.payment_status.value
        model.payment_method = order.payment_method.value if order.payment_method else None

        rating = order.rating
        model.rating_overall = rating.overall if rating else None
        model.rating_quality = rating.quality if rating else None
        model.rating_delivery = rating.delivery if rating else None
        model.rating_service = rating.service if rating else None
        model.rating_comment = rating.comment if rating else None

    @staticmethod
    def _item_rows(order: Order) -> List[OrderItemModel]:
        return [
            OrderItemModel(
                position=pos,
                material_id=i.material_id,
                material_name=i.material_name,
                quantity=i.quantity,
                unit_price=i.unit_price,
                unit=i.unit,
            )
            for pos, i in enumerate(order.items)
        ]

    @staticmethod
    def _sync_tracking_steps(model: OrderModel, order: Order) -> None:
        # aktualizacja w miejscu - unique (order_pk, step) nie pozwala na delete+insert
        existing = {row.step: row for row in model.tracking_steps}

        for pos, step in enumerate(order.tracking_steps):
            row = existing.pop(step.step, None)
            if row is None:
                model.tracking_steps.append(
                    TrackingStepModel(
                        position=pos,
                        step=step.step,
                        time=step.time,
                        completed=step.completed,
                        description=step.description,
                    )
                )
            else:
                row.position = pos
                row.time = step.time
                row.completed = step.completed
                row.description = step.description

        for row in existing.values():
            model.tracking_steps.remove(row)

    # =====================================================
    # QUERY
    # =====================================================
    @_unavailable_on_db_error
    def find_by_id(self, order_id: str) -> Optional[Order]:
        model = self.db.execute(
            self._base_query()
            .where(OrderModel.order_id == order_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_domain(model) if model else None

    @_unavailable_on_db_error
    def exists(self, order_id: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_id == order_id)
        ).first() is not None

    @_unavailable_on_db_error
    def find_by_vendor(self, vendor_id, status=None, limit=None) -> List[Order]:
        return self._list(OrderModel.vendor_id == vendor_id, status, limit)

    @_unavailable_on_db_error
    def find_by_supplier(self, supplier_id, status=None, limit=None) -> List[Order]:
        return self._list(OrderModel.supplier_id == supplier_id, status, limit)

    @_unavailable_on_db_error
    def list_recent(self, limit, status=None) -> List[Order]:
        return self._list(None, status, limit)

    def _base_query(self):
        return select(OrderModel).options(
            selectinload(OrderModel.items),
            selectinload(OrderModel.tracking_steps),
        )

    def _list(self, owner_clause, status, limit) -> List[Order]:
        query = self._base_query()
        if owner_clause is not None:
            query = query.where(owner_clause)
        if status is not None:
            query = query.where(OrderModel.status == OrderStatus(status).value)

        query = query.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        if limit is not None:
            query = query.limit(limit)

        models = self.db.execute(query.execution_options(populate_existing=True)).scalars().all()
        return [self._to_domain(m) for m in models]

    @staticmethod
    def _to_domain(model: OrderModel) -> Order:
        rating = None
        if model.rating_overall is not None:
            rating = Rating(
                overall=model.rating_overall,
                quality=model.rating_quality,
                delivery=model.rating_delivery,
                service=model.rating_service,
                comment=model.rating_comment,
            )

        return Order(
            order_id=model.order_id,
            vendor_id=model.vendor_id,
            supplier_id=model.supplier_id,
            items=[
                OrderItem(
                    material_id=i.material_id,
                    material_name=i.material_name,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    unit=i.unit,
                )
                for i in model.items
            ],
            total_amount=model.total_amount,
            delivery_charges=model.delivery_charges,
            final_amount=model.final_amount,
            status=model.status,
            payment_status=model.payment_status,
            payment_method=model.payment_method,
            delivery_address=model.delivery_address,
            delivery_instructions=model.delivery_instructions,
            estimated_delivery_time=_aware(model.estimated_delivery_time),
            actual_delivery_time=_aware(model.actual_delivery_time),
            tracking_steps=[
                TrackingStep(
                    step=s.step,
                    time=_aware(s.time),
                    completed=s.completed,
                    description=s.description,
                )
                for s in model.tracking_steps
            ],
            rating=rating,
            vendor_notes=model.vendor_notes,
            supplier_notes=model.supplier_notes,
            cancellation_reason=model.cancellation_reason,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
            version=model.version,
        )
