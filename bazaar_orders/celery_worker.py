# bazaar_orders/celery_worker.py
from celery import Celery

from bazaar_orders.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "bazaar_orders",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# Explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "bazaar_orders.services.notification_service",
)

celery_app.conf.timezone = "UTC"
