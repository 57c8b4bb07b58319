"""
HTTP client for a running MCP proxy.

Thin wrapper over the REST endpoints, used by scripts/proxy_cli.py.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import requests

logger = logging.getLogger(__name__)


class ProxyClientError(Exception):
    """Non-2xx response from the proxy."""
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class ProxyClient:
    def __init__(self, base_url: str, api_key: str, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        response = requests.request(
            method,
            url,
            params=params,
            json=body,
            headers={"x-api-key": self.api_key, "Accept": "application/json"},
            timeout=self.timeout,
        )

        if not 200 <= response.status_code < 300:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise ProxyClientError(response.status_code, message)

        return response.json()

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def list_tools(self) -> Dict[str, Any]:
        return self._request("GET", "/tools")

    def serialize_tools(self) -> Dict[str, Any]:
        return self._request("GET", "/serialize-tools")

    def call_tool(self, tool_name: str, params: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """Invoke through the query channel; params become query parameters."""
        query = {"tool": tool_name}
        query.update(params or {})
        return self._request("GET", "/tool", params=query)

    def call_tool_with_body(self, tool_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Invoke through the body channel."""
        return self._request("POST", "/tool", params={"tool": tool_name}, body=body)
