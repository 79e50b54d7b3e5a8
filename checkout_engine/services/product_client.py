# checkout_engine/services/product_client.py
import requests

from checkout_engine.utils.retry import http_retry
from checkout_engine.utils.settings import PRODUCT_SERVICE_URL, PRODUCT_SERVICE_TIMEOUT
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Catalog lookup: price, per-unit discount and stock for a set of products."""

    def __init__(self, base_url: str | None = None, timeout: int = PRODUCT_SERVICE_TIMEOUT):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def fetch_products(self, product_ids: list[int]) -> list[dict]:
        if not product_ids:
            return []
        url = f"{self.base_url}/products"
        ids = ",".join(str(i) for i in sorted(set(product_ids)))
        logger.info(f"ProductClient GET {url}?ids={ids}")

        resp = requests.get(url, params={"ids": ids}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
