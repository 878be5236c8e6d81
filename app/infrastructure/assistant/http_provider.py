"""
Shared HTTP plumbing for market data adapters.

One GET per call with a fixed timeout and query-string API key.
Timeouts, HTTP errors and non-JSON bodies all surface as
ProviderUnavailableError so the gateway can move on.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

import httpx

from app.domain.assistant.errors import ProviderUnavailableError
from app.domain.assistant.ports import MarketDataProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def to_float(value: Any) -> Optional[float]:
    """Parse provider numbers, including strings such as "(+1.25%)"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).strip().strip("()%").replace(",", "").replace("+", "")
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def to_int(value: Any) -> Optional[int]:
    number = to_float(value)
    return int(number) if number is not None else None


def to_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value).strip()
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%d"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class JsonHttpProvider(MarketDataProvider):
    """Base class for providers reached over HTTP GET with JSON replies."""

    name = "http"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET ``path`` once and return the decoded JSON body."""
        query = dict(params or {})
        query["apikey"] = self._api_key
        url = f"{self._base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=query)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as exc:
            raise ProviderUnavailableError(self.name, f"timeout on {path}") from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailableError(
                self.name, f"HTTP {exc.response.status_code} on {path}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(self.name, f"{type(exc).__name__} on {path}") from exc
        except ValueError as exc:
            raise ProviderUnavailableError(self.name, f"malformed payload on {path}") from exc

    @contextmanager
    def _parsing(self, path: str) -> Iterator[None]:
        """Report wrongly shaped replies as an outage of this provider."""
        try:
            yield
        except (AttributeError, KeyError, TypeError) as exc:
            raise ProviderUnavailableError(self.name, f"malformed payload on {path}") from exc
