# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications for the buyer.
    Uses Celery so checkout never waits on delivery of the message.
    """

    @staticmethod
    def order_created(user_id: str, order_id: int):
        send_order_notification_task.delay(user_id, order_id, "created")

    @staticmethod
    def payment_confirmed(user_id: str, order_id: int, payment_status: str):
        send_order_notification_task.delay(user_id, order_id, f"payment:{payment_status}")

    @staticmethod
    def fulfillment_changed(user_id: str, order_id: int, status: str):
        send_order_notification_task.delay(user_id, order_id, f"status:{status}")


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: int, event: str):
    """
    Celery task. A real deployment would hand this to e-mail/SMS/push,
    here it is only logged.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} -> {event}")

    return {"user_id": user_id, "order_id": order_id, "event": event, "status": "sent"}
