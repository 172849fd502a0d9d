"""HTTP client for the upstream Redmine REST API."""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..models.redmine import CallResult, Failure, Success

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Redmine-API-Key"

MISSING_CREDENTIALS = (
    "Las credenciales de Redmine no están configuradas. "
    "Verifica las variables de entorno REDMINE_URL y REDMINE_API_KEY."
)


class RedmineClient:
    """
    Authenticated access to the Redmine API.

    Every call returns a `Success` or a `Failure`; transport and HTTP errors
    never propagate past `call`. Connections are pooled and kept alive for the
    lifetime of the client.

    When the base URL is https and `tls_insecure` is set, certificate
    verification is turned off so self-hosted trackers with self-signed
    certificates keep working. This trusts any certificate the server presents.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings
        self.base_url = settings.redmine_url
        self.is_https = self.base_url.startswith("https://")
        self.verify_tls = not (self.is_https and settings.tls_insecure)
        self.client = httpx.AsyncClient(
            timeout=settings.request_timeout,
            verify=self.verify_tls,
            transport=transport,
        )

    def _get_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            API_KEY_HEADER: self.settings.redmine_api_key,
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None
    ) -> CallResult:
        """
        Call `endpoint` (with its leading slash and query string) upstream.

        Args:
            endpoint: Path appended verbatim to the configured base URL
            method: HTTP method
            body: JSON body, if any
            headers: Headers overriding the defaults
            content: Raw body, sent instead of `body` (used for uploads)
        """
        if not self.settings.has_credentials:
            logger.error("Redmine call to %s skipped: %s", endpoint, MISSING_CREDENTIALS)
            return Failure(error=MISSING_CREDENTIALS)

        try:
            response = await self.client.request(
                method,
                f"{self.base_url}{endpoint}",
                json=body if content is None else None,
                content=content,
                headers=self._get_headers(headers),
            )
            response.raise_for_status()
            return Success(data=_parse_body(response))
        except httpx.HTTPStatusError as e:
            failure = Failure(
                error=_parse_body(e.response) or str(e),
                status=e.response.status_code,
                code=type(e).__name__,
            )
        except httpx.HTTPError as e:
            failure = Failure(error=str(e) or type(e).__name__, code=type(e).__name__)

        logger.error(
            "Error en Redmine API: endpoint=%s url=%s status=%s code=%s error=%s",
            endpoint, self.base_url, failure.status, failure.code, failure.error
        )
        return failure

    async def close(self) -> None:
        """Close pooled connections."""
        await self.client.aclose()


def _parse_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
