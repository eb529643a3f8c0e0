"""
Gateway client for the JU activity backend.

Owns the base URL, bearer-token injection and error normalisation; the
resource groups (``gateway.activities``, ``gateway.applications`` ...) build
paths and map JSON onto the domain models.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import aiohttp

from .api import (
    ActivitiesApi,
    ApplicationsApi,
    AttendanceApi,
    AuditLogsApi,
    AuthApi,
    NotificationsApi,
    UsersApi,
)
from .api.auth import get_standard_headers
from .errors import GatewayFailure
from .requests import ApiResponseError, make_request

_LOGGER = logging.getLogger(__name__)

TokenProvider = Callable[[], "str | None"]
ErrorHandler = Callable[[GatewayFailure], None]


class Gateway:
    """
    Thin async client over the backend's REST API.

    Every failure (non-2xx answer, timeout, connection error, unexpected body)
    is raised as GatewayFailure after being passed to the optional error handler.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token_provider = token_provider
        self._error_handler: ErrorHandler | None = None

        self.auth = AuthApi(self)
        self.users = UsersApi(self)
        self.activities = ActivitiesApi(self)
        self.applications = ApplicationsApi(self)
        self.notifications = NotificationsApi(self)
        self.attendance = AttendanceApi(self)
        self.audit_logs = AuditLogsApi(self)

    def set_token_provider(self, provider: TokenProvider | None) -> None:
        self._token_provider = provider

    def set_error_handler(self, handler: ErrorHandler | None) -> None:
        """Register a callback that sees every failure before it is raised."""
        self._error_handler = handler

    def current_token(self) -> str | None:
        if self._token_provider is None:
            return None
        try:
            return self._token_provider()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Failed to get token: %s", exc)
            return None

    async def request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        params: dict | None = None,
        data: aiohttp.FormData | None = None,
        token: str | None = None,
    ) -> Any:
        """Send one request to ``base_url + path`` and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        headers = get_standard_headers(token or self.current_token(), json_body=data is None)
        try:
            return await make_request(
                method,
                url,
                headers,
                payload=payload,
                params=params,
                data=data,
                timeout=self.timeout,
            )
        except ApiResponseError as exc:
            raise self._failure(exc.message, exc.status) from exc
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise self._failure(f"Timeout calling {url}") from exc
        except aiohttp.ClientError as exc:
            raise self._failure(
                f"Network error calling {url}. Is the backend running? ({exc})"
            ) from exc
        except ValueError as exc:
            raise self._failure(str(exc)) from exc

    def _failure(self, message: str, status: int = 0) -> GatewayFailure:
        failure = GatewayFailure(message, status)
        _LOGGER.debug("Gateway failure: %s", failure)
        if self._error_handler is not None:
            try:
                self._error_handler(failure)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Gateway error handler raised: %s", exc)
        return failure
