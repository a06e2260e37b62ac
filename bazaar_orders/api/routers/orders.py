# bazaar_orders/api/routers/orders.py
from typing import List, Optional, Tuple, Type

from fastapi import APIRouter, Depends, HTTPException, Query

from bazaar_orders.api.deps import get_current_actor, get_service
from bazaar_orders.domain.errors import (
    AuthorizationError,
    NotFoundError,
    OrderError,
    StorageConflict,
    StorageUnavailable,
    TransitionError,
    ValidationError,
)
from bazaar_orders.domain.models import Actor
from bazaar_orders.domain.schemas import (
    DeliveryChargesIn,
    ItemsUpdateIn,
    OrderCreate,
    OrderListOut,
    OrderOut,
    PaymentUpdateIn,
    RatingIn,
    StatusUpdateIn,
)
from bazaar_orders.domain.status import OrderStatus
from bazaar_orders.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])

_ERROR_STATUS: List[Tuple[Type[OrderError], int]] = [
    (StorageUnavailable, 503),
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (ValidationError, 400),
    (TransitionError, 409),
    (StorageConflict, 409),
]


def _http_error(e: OrderError) -> HTTPException:
    for exc_type, status_code in _ERROR_STATUS:
        if isinstance(e, exc_type):
            return HTTPException(status_code=status_code, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    """
    Checkout vendora - snapshot pozycji z katalogu, status pending.
    """
    try:
        return svc.create_order(actor, payload)
    except OrderError as e:
        raise _http_error(e)


@router.get("", response_model=OrderListOut)
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    """
    Zamowienia widoczne dla wywolujacego (vendor - swoje, supplier - do niego).
    """
    try:
        orders = svc.list_orders(actor, status, limit)
    except OrderError as e:
        raise _http_error(e)
    return {"data": orders, "count": len(orders)}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(actor, order_id)
    except OrderError as e:
        raise _http_error(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def change_status(
    order_id: str,
    payload: StatusUpdateIn,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.change_status(actor, order_id, payload)
    except OrderError as e:
        raise _http_error(e)


@router.patch("/{order_id}/items", response_model=OrderOut)
def replace_items(
    order_id: str,
    payload: ItemsUpdateIn,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    """
    Zmiana pozycji - tylko vendor i tylko dopoki zamowienie jest pending.
    """
    try:
        return svc.replace_items(actor, order_id, payload.items)
    except OrderError as e:
        raise _http_error(e)


@router.patch("/{order_id}/delivery-charges", response_model=OrderOut)
def set_delivery_charges(
    order_id: str,
    payload: DeliveryChargesIn,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.set_delivery_charges(actor, order_id, payload.delivery_charges)
    except OrderError as e:
        raise _http_error(e)


@router.patch("/{order_id}/payment", response_model=OrderOut)
def update_payment(
    order_id: str,
    payload: PaymentUpdateIn,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_payment(actor, order_id, payload)
    except OrderError as e:
        raise _http_error(e)


@router.post("/{order_id}/rating", response_model=OrderOut)
def rate_order(
    order_id: str,
    payload: RatingIn,
    actor: Actor = Depends(get_current_actor),
    svc: OrderService = Depends(get_service),
):
    """
    Ocena tylko po dostarczeniu, inaczej 409.
    """
    try:
        return svc.rate_order(actor, order_id, payload)
    except OrderError as e:
        raise _http_error(e)
