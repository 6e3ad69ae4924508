# storefront/services/product_client.py
import requests
from requests import RequestException
from pydantic import ValidationError as SchemaError

from storefront.domain.errors import ExternalServiceError, NotFoundError
from storefront.domain.schemas import ProductOut
from storefront.utils.retry import http_retry
from storefront.utils.settings import CATALOG_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Read-only client of the catalog service."""

    def __init__(self, base_url: str | None = None, timeout: int = 2, session: requests.Session | None = None):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_product(self, product_id: str) -> ProductOut:
        try:
            payload = self._get(f"/products/{product_id}")
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise NotFoundError(f"Product {product_id} not found") from e
            logger.error(f"Catalog returned an error for product {product_id}: {e}")
            raise ExternalServiceError("catalog", f"could not fetch product {product_id}") from e
        except RequestException as e:
            logger.error(f"Catalog unreachable while fetching product {product_id}: {e}")
            raise ExternalServiceError("catalog", f"could not fetch product {product_id}") from e

        try:
            return ProductOut.model_validate(payload)
        except SchemaError as e:
            raise ExternalServiceError("catalog", f"malformed product {product_id}") from e

    @http_retry()
    def _get(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        logger.info(f"ProductClient GET {url}")

        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
