# storefront/services/storage.py
import redis
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class LocalStorage:
    """
    Durable key-value storage for client-side state (cart, store settings).
    -get / set / delete on string values
    -optional expiry per key
    -redis errors are retried, then re-raised to the caller
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def get(self, key: str) -> str | None:
        value = self.redis.get(key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    @redis_retry()
    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        logger.debug(f"Storage SET {key} ({len(value)} bytes, ttl={ttl})")
        #ex=None means the key never expires
        self.redis.set(name=key, value=value, ex=ttl)

    @redis_retry()
    def delete(self, key: str) -> None:
        self.redis.delete(key)
