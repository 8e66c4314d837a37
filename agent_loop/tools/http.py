"""HTTP request tool - lets the model fetch a URL."""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ..registry.tool_registry import Tool, ToolDefinition

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


class HttpToolError(Exception):
    """The request could not be sent or its body could not be read."""

    def __init__(self, message: str):
        super().__init__(f"HTTP error: {message}")


class HttpRequestParams(BaseModel):
    url: str = Field(description="Absolute URL to request")
    method: str = Field(default="GET", description="HTTP method")


class HttpRequestTool(Tool):
    """Make HTTP requests and return the response body as text.

    Non-2xx responses are not errors: the model gets the body either way.
    Only transport failures and invalid methods raise ``HttpToolError``.
    """

    name = "http_request"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_chars: int = 20_000,
    ):
        """
        Args:
            client: Shared ``httpx.AsyncClient``. One is created per call
                when omitted.
            timeout: Request timeout in seconds (only for created clients).
            max_chars: Response text is truncated to this many characters.
        """
        self._client = client
        self.timeout = timeout
        self.max_chars = max_chars

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description="Make HTTP requests",
            params_model=HttpRequestParams,
        )

    async def call(self, params: HttpRequestParams) -> str:
        method = (params.method or "GET").strip().upper() or "GET"
        if method not in ALLOWED_METHODS:
            raise HttpToolError(f"Invalid method '{params.method}'")

        logger.debug(f"http_request {method} {params.url}")
        try:
            if self._client is not None:
                response = await self._client.request(method, params.url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.request(method, params.url)
        except httpx.HTTPError as e:
            raise HttpToolError(str(e) or type(e).__name__) from e

        text = response.text
        if len(text) > self.max_chars:
            return text[: self.max_chars] + f"\n... [truncated {len(text) - self.max_chars} chars]"
        return text
