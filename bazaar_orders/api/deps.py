# bazaar_orders/api/deps.py
from typing import Iterator, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bazaar_orders.data.backend import DataBackend
from bazaar_orders.domain.errors import StorageUnavailable
from bazaar_orders.domain.models import Actor
from bazaar_orders.repos.order_store import OrderStore
from bazaar_orders.services.identity_client import IdentityClient
from bazaar_orders.services.lock_service import LockService
from bazaar_orders.services.material_client import MaterialClient
from bazaar_orders.services.notification_service import NotificationService
from bazaar_orders.services.order_service import OrderService
from bazaar_orders.utils.settings import ORDER_LOCKS_ENABLED

bearer = HTTPBearer(auto_error=False)


def get_backend(request: Request) -> DataBackend:
    return request.app.state.backend


def get_store(backend: DataBackend = Depends(get_backend)) -> Iterator[OrderStore]:
    with backend.store() as store:
        yield store


def get_catalog() -> MaterialClient:
    return MaterialClient()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_lock_service() -> Optional[LockService]:
    return LockService() if ORDER_LOCKS_ENABLED else None


def get_identity_client() -> IdentityClient:
    return IdentityClient()


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    identity: IdentityClient = Depends(get_identity_client),
) -> Actor:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")

    try:
        actor = identity.resolve(credentials.credentials)
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    if actor is None:
        raise HTTPException(status_code=401, detail="Invalid token.")
    return actor


def get_service(
    store: OrderStore = Depends(get_store),
    catalog: MaterialClient = Depends(get_catalog),
    notifier: NotificationService = Depends(get_notifier),
    lock_service: Optional[LockService] = Depends(get_lock_service),
) -> OrderService:
    return OrderService(
        store=store,
        catalog=catalog,
        notifier=notifier,
        lock_service=lock_service,
    )
