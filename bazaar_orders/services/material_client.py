# bazaar_orders/services/material_client.py
import requests
from requests import RequestException

from bazaar_orders.domain.errors import CatalogUnavailable, ValidationError
from bazaar_orders.domain.models import MaterialSnapshot
from bazaar_orders.utils.retry import http_retry
from bazaar_orders.utils.settings import MATERIAL_SERVICE_URL
from bazaar_orders.utils.logging import get_logger

logger = get_logger(__name__)


class MaterialClient:
    """Odczyt nazwy/ceny/jednostki materialu z katalogu (tylko odczyt)."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or MATERIAL_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, url: str) -> requests.Response:
        logger.info(f"MaterialClient GET {url}")
        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def fetch_material(self, material_id: str) -> MaterialSnapshot:
        url = f"{self.base_url}/materials/{material_id}"
        try:
            resp = self._get(url)
        except RequestException as e:
            logger.error(f"Material catalog unreachable: {e}")
            raise CatalogUnavailable("Material catalog not available") from e

        if resp.status_code == 404:
            raise ValidationError(f"Material {material_id} not found")
        if resp.status_code >= 400:
            raise ValidationError(f"Material {material_id} could not be resolved")

        data = resp.json()
        return MaterialSnapshot(
            id=str(data.get("id", material_id)),
            name=data["name"],
            price=str(data["price"]),
            unit=data["unit"],
            supplier_id=str(data["supplier_id"]) if data.get("supplier_id") else None,
        )
