# bazaar_orders/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError

from bazaar_orders.domain.errors import StorageConflict, StorageUnavailable
from bazaar_orders.utils.retry import redis_retry
from bazaar_orders.utils.settings import REDIS_URL, ORDER_LOCK_TTL_SECONDS
from bazaar_orders.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nikt nie wcisnie sie miedzy GET a DEL


class LockService:
    """
    -blokada jednego zamowienia na czas odczyt-modyfikacja-zapis
    -klucz per order_id, inne zamowienia nie czekaja
    -zwalnianie przez lua (tylko wlasciciel tokenu)
    """

    def __init__(self, url: str | None = None, ttl: int = ORDER_LOCK_TTL_SECONDS, client=None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl

    @staticmethod
    def _key(order_id: str) -> str:
        return f"order:{order_id}:lock"

    @redis_retry()
    def acquire_order_lock(self, order_id: str, token: str) -> bool:
        key = self._key(order_id)
        logger.info(f"Acquire lock {key}")
        #SET order:ORD123:lock "<token>" NX EX 10
        return bool(self.redis.set(name=key, value=token, nx=True, ex=self.ttl))

    @redis_retry()
    def release_order_lock(self, order_id: str, token: str) -> bool:
        key = self._key(order_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def hold(self, order_id: str):
        token = uuid.uuid4().hex
        try:
            locked = self.acquire_order_lock(order_id, token)
        except RedisError as e:
            logger.error(f"Redis unavailable, cannot lock order {order_id}: {e}")
            raise StorageUnavailable("Order lock service not available") from e

        if not locked:
            raise StorageConflict(f"Order {order_id} is being modified by another request")
        try:
            yield
        finally:
            try:
                self.release_order_lock(order_id, token)
            except RedisError as e:
                # zapis juz jest zrobiony, lock wygasnie po TTL
                logger.warning(f"Failed to release lock for order {order_id}: {e}")
