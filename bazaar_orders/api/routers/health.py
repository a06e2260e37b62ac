# bazaar_orders/api/routers/health.py
from fastapi import APIRouter, Depends

from bazaar_orders.api.deps import get_backend
from bazaar_orders.data.backend import DataBackend

router = APIRouter(tags=["health"])


@router.get("/health")
def health(backend: DataBackend = Depends(get_backend)):
    return {"status": "ok", "backend": backend.mode.value}
