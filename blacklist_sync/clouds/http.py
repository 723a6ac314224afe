"""
HTTP helpers shared by cloud providers.
"""

import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..exceptions import BadResponseError, HTTPError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def raise_for_status(response: httpx.Response) -> None:
    """Raise HTTPError for any non-2xx response."""
    if not response.is_success:
        raise HTTPError(response.status_code, response.reason_phrase)


def parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise BadResponseError(f"invalid JSON: {e}")


def validate(model: Type[M], data: Any) -> M:
    """Validate a decoded response body against a pydantic model.

    Raises:
        BadResponseError: The body does not match the model
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BadResponseError(f"{model.__name__}: {e.error_count()} validation error(s)")


class CloudHTTPClient:
    """
    Thin wrapper over httpx used by every provider.

    Timeouts default to httpx's own unless configured.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds, or None for httpx defaults
            transport: Optional transport (e.g. httpx.MockTransport in tests)
        """
        self.timeout = timeout
        self.transport = transport

    async def send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and return the response whatever its status."""
        client_kwargs = {"transport": self.transport}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout

        async with httpx.AsyncClient(**client_kwargs) as client:
            response = await client.request(method, url, **kwargs)

        logger.debug(f"{method} {url.split('?')[0]} -> {response.status_code}")
        return response

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await self.send(method, url, **kwargs)
        raise_for_status(response)
        return response

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self.request(method, url, **kwargs)
        return parse_json(response)

    async def request_text(self, method: str, url: str, **kwargs: Any) -> str:
        response = await self.request(method, url, **kwargs)
        return response.text
