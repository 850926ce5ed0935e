"""
Platform Client Module

REST client for the banking core platform, the system of record for
permissions, global configuration, users and maker-checker entries.
Every call is issued once and read fresh: there is no cache and no retry.
"""

import httpx
import logging
from typing import Any, Dict, Optional

from .errors import MakerCheckerError, UpstreamUnavailable, map_upstream_error
from .credentials import get_current_authorization
from .tenancy import get_current_tenant

logger = logging.getLogger("maker_checker.client")

TENANT_HEADER = "Fineract-Platform-TenantId"


class PlatformClient:
    """REST client for the banking core platform"""

    def __init__(
        self,
        base_url: str = "http://localhost:8443/fineract-provider/api",
        username: str = "mifos",
        password: str = "password",
        timeout: float = 30.0,
        default_tenant: str = "default",
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.timeout = timeout
        self.default_tenant = default_tenant
        self._client = httpx.Client(
            timeout=timeout,
            auth=httpx.BasicAuth(username, password),
            transport=transport
        )

    def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                json: Any = None, authorization: Optional[str] = None) -> Any:
        """Send one request to the platform and return the decoded body.

        Args:
            method: HTTP method
            path: Platform path, e.g. "/v1/makercheckers"
            params: Query parameters; None values are dropped
            json: JSON body for POST/PUT
            authorization: Authorization header to forward; defaults to the
                credentials of the request being served, and the service
                credentials are used only when there are none

        Returns:
            Decoded JSON body, None for empty responses

        Raises:
            UpstreamUnavailable: The platform could not be reached
            MakerCheckerError: The platform answered with an error status
        """
        tenant = get_current_tenant() or self.default_tenant
        authorization = authorization or get_current_authorization()
        headers = {
            "Content-Type": "application/json",
            TENANT_HEADER: tenant,
        }
        if authorization:
            headers["Authorization"] = authorization

        if params:
            params = {k: v for k, v in params.items() if v is not None}

        url = f"{self.base_url}{path}"
        extra = {"auth": None} if authorization else {}
        try:
            response = self._client.request(
                method,
                url,
                params=params or None,
                json=json,
                headers=headers,
                **extra
            )
        except httpx.HTTPError as e:
            logger.error(f"Platform call {method} {path} failed: {e}")
            raise UpstreamUnavailable(f"Platform unavailable: {e}") from e

        if response.status_code == 204:
            return None

        body: Any = None
        text = response.text
        if text:
            try:
                body = response.json()
            except ValueError:
                body = {"message": text} if response.is_success else text

        if not response.is_success:
            error = map_upstream_error(response.status_code, body)
            logger.warning(f"Platform returned {response.status_code} for {method} {path}: {error.code}")
            raise error

        return body

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("POST", path, params=params, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def health_check(self) -> bool:
        """Check if the platform answers"""
        try:
            self.get("/v1/configurations")
            return True
        except MakerCheckerError:
            return False

    def close(self):
        """Close the HTTP client"""
        self._client.close()
