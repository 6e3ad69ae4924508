# storefront/services/store_config.py
import json
import warnings
from decimal import Decimal

from pydantic import ValidationError as SchemaError
from redis.exceptions import RedisError

from storefront.domain.errors import PersistenceDurabilityWarning, ValidationError
from storefront.domain.schemas import StoreConfig, StoreConfigPatch
from storefront.services.storage import LocalStorage
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

STORE_CONFIG_KEY = "store_info"
STORE_CONFIG_VERSION = 1


class StoreConfigHolder:
    """
    Process-wide store settings.
    get() serves the cached copy, refresh() re-reads storage to pick up
    changes made by another admin session.
    """

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._config = self._read() or StoreConfig()

    def get(self) -> StoreConfig:
        return self._config.model_copy()

    def update(self, patch: StoreConfigPatch | dict) -> StoreConfig:
        if isinstance(patch, dict):
            patch = StoreConfigPatch.model_validate(patch)
        changes = patch.model_dump(exclude_none=True)

        for field in ("delivery_fee", "min_order"):
            if field in changes and Decimal(changes[field]) < 0:
                raise ValidationError(f"{field} cannot be negative", field=field)

        self._config = self._config.model_copy(update=changes)
        logger.info(f"Store settings updated: {sorted(changes)}")
        self._write(self._config)
        return self.get()

    def refresh(self) -> StoreConfig:
        """Re-read storage. When storage is unreachable the cached settings are kept."""
        fresh = self._read()
        if fresh is not None:
            self._config = fresh
        return self.get()

    def _read(self) -> StoreConfig | None:
        try:
            raw = self.storage.get(STORE_CONFIG_KEY)
        except RedisError as e:
            logger.warning(f"Could not read store settings: {e}")
            return None

        #nothing stored yet, the caller keeps what it has
        if not raw:
            return None

        try:
            data = json.loads(raw)
            if data.get("version") != STORE_CONFIG_VERSION:
                logger.warning("Stored store settings have an incompatible format, using defaults")
                return StoreConfig()
            return StoreConfig.model_validate(data.get("config") or {})
        except (ValueError, AttributeError, SchemaError) as e:
            logger.warning(f"Stored store settings are unreadable, using defaults: {e}")
            return StoreConfig()

    def _write(self, config: StoreConfig) -> None:
        payload = json.dumps(
            {"version": STORE_CONFIG_VERSION, "config": config.model_dump(mode="json")}
        )
        try:
            self.storage.set(STORE_CONFIG_KEY, payload)
        except (RedisError, OSError) as e:
            message = f"Store settings not persisted: {e}"
            logger.warning(message)
            warnings.warn(message, PersistenceDurabilityWarning, stacklevel=3)
