"""HTTP client for the methoddocs API"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


def _method_path(method_id: str) -> str:
    """Ids are user input: keep "/", "?" and "#" inside the path segment"""
    return f"/api/methods/{quote(method_id, safe='')}"


class ClientError(Exception):
    """Non-2xx response (or no response) from the API"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def field_errors(self) -> List[Dict[str, Any]]:
        return list(self.details.get("errors") or [])


class MethodsClient:
    """
    Thin wrapper over httpx for the /api/methods endpoints

    Example:
        with MethodsClient("http://127.0.0.1:5000") as client:
            for method in client.list_methods():
                print(method["name"])
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5000",
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "MethodsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        try:
            if payload is None:
                response = self._http.request(method, path)
            else:
                response = self._http.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise ClientError(0, "CONNECTION_ERROR", f"Cannot reach {self._http.base_url}: {e}") from e

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        logger.debug(f"{method} {path} -> {response.status_code}: {body}")
        raise ClientError(
            response.status_code,
            body.get("error_code", "HTTP_ERROR"),
            body.get("message") or response.reason_phrase,
            body.get("details"),
        )

    def list_methods(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/methods")

    def get_method(self, method_id: str) -> Dict[str, Any]:
        return self._request("GET", _method_path(method_id))

    def create_method(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/methods", payload)

    def update_method(self, method_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", _method_path(method_id), payload)

    def delete_method(self, method_id: str) -> Dict[str, Any]:
        return self._request("DELETE", _method_path(method_id))

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")
