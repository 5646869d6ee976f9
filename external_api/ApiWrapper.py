import logging

import aiohttp
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ApiResponseDTO(BaseModel):
    status: int
    ok: bool
    json_body: dict = {}


class ApiWrapper:
    """Thin aiohttp client shared by the payment and email integrations."""

    @staticmethod
    async def fetch_api_request(url: str, method: str = "GET", data: str | None = None,
                                headers: dict | None = None, timeout: float = 10) -> ApiResponseDTO:
        """
        Perform one HTTP request with a bounded total timeout.

        Non-JSON bodies are reported as an empty dict so callers only have to look
        at `ok` and the fields they need.

        Raises:
            aiohttp.ClientError: on connection failures
            asyncio.TimeoutError: when the timeout elapses
        """
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.request(method, url, data=data, headers=headers) as response:
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    logger.warning(f"Non-JSON response from {method} {url} (HTTP {response.status})")
                    body = {}
                if not isinstance(body, dict):
                    body = {}
                return ApiResponseDTO(status=response.status, ok=response.status < 400, json_body=body)
