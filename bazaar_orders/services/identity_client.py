# bazaar_orders/services/identity_client.py
import requests
from requests import RequestException

from bazaar_orders.domain.errors import StorageUnavailable
from bazaar_orders.domain.models import Actor
from bazaar_orders.utils.retry import http_retry
from bazaar_orders.utils.settings import AUTH_SERVICE_URL
from bazaar_orders.utils.logging import get_logger

logger = get_logger(__name__)


class IdentityClient:
    """
    Klient zewnetrznego serwisu auth.
    Token bearer -> (user_id, role). Logowanie i rejestracja sa poza tym serwisem.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or AUTH_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get_me(self, token: str) -> requests.Response:
        url = f"{self.base_url}/auth/me"
        resp = requests.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def resolve(self, token: str) -> Actor | None:
        try:
            resp = self._get_me(token)
        except RequestException as e:
            logger.error(f"Auth service unreachable: {e}")
            raise StorageUnavailable("Auth service not available") from e

        if resp.status_code == 429:
            logger.warning("Auth service is rate limiting token checks")
            raise StorageUnavailable("Auth service not available")
        if resp.status_code >= 400:
            # 400/401/403/404 i reszta 4xx - token nieprawidlowy
            return None

        try:
            data = resp.json()
            user = data.get("user", data)
            return Actor(user_id=str(user["id"]), role=user["role"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Malformed auth service reply: {e}")
            return None
