# bazaar_orders/services/notification_service.py
from bazaar_orders.celery_worker import celery_app
from bazaar_orders.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia o zamowieniach (fire-and-forget przez Celery).
    Blad kolejki nie moze zepsuc operacji na zamowieniu.
    """

    def notify(self, recipient_id: str, order_id: str, event: str, message: str) -> None:
        try:
            send_order_notification_task.delay(recipient_id, order_id, event, message)
        except Exception as e:
            logger.warning(f"Could not enqueue notification for order {order_id}: {e}")


@celery_app.task(name="bazaar_orders.services.notification_service.send_order_notification_task")
def send_order_notification_task(recipient_id: str, order_id: str, event: str, message: str):
    """
    Celery task - w prawdziwym systemie email/SMS/WhatsApp.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {recipient_id}: Order {order_id} {event} - {message}")

    return {"recipient_id": recipient_id, "order_id": order_id, "event": event, "status": "sent"}
