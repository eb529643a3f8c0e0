"""
Low-level authentication calls for the gateway.

Responsible for:
- Signing in and registering, returning the token + identity
- Verifying the stored token (``/auth/me``) and email addresses
- Building the standard authorization headers used by all API calls
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from ju_activity.api.common import parse_item, to_payload
from ju_activity.api.users import parse_identity
from ju_activity.errors import GatewayFailure
from ju_activity.models import Identity

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)


class LoginResponse:
    """Parsed response from the login and register endpoints."""

    success: bool = False
    token: str | None = None
    identity: Identity | None = None

    def __init__(self, json: Mapping[str, Any]) -> None:
        self.success = bool(json.get("success"))
        self.token = json.get("token") or None
        user = json.get("user")
        self.identity = parse_item(parse_identity, user, "user") if user is not None else None

    def __str__(self) -> str:
        user_id = self.identity.id if self.identity else None
        return f"success: {self.success}, userID: {user_id}, token: {'set' if self.token else 'none'}"


def get_standard_headers(token: str | None, json_body: bool = True) -> dict:
    """
    Build the standard HTTP headers used by gateway requests.

    :param token: Bearer token, or None for anonymous calls.
    :param json_body: False for multipart uploads, where aiohttp sets the content type.
    :return: Dictionary of HTTP headers.
    """
    headers = {"accept": "application/json"}
    if json_body:
        headers["Content-Type"] = "application/json"
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class AuthApi:
    """Authentication endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def login(self, email: str, password: str) -> LoginResponse:
        """
        Sign in with credentials.

        Corresponding CURL command:
        curl -X 'POST' '<api>/auth/login' -d '{"email": "...", "password": "..."}'
        """
        raw_json = await self._gateway.request(
            "POST", "/auth/login", payload={"email": email, "password": password}
        )
        response = LoginResponse(_as_object(raw_json, "login"))
        _LOGGER.debug("Login response: %s", response)
        return response

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        student_id: str | None = None,
        department: str | None = None,
    ) -> LoginResponse:
        """
        Create a student account; the backend signs it in right away.

        Corresponding CURL command:
        curl -X 'POST' '<api>/auth/register' -d '{"name": "...", "email": "...", "password": "...", "studentId": "..."}'
        """
        payload = to_payload(
            {
                "name": name,
                "email": email,
                "password": password,
                "student_id": student_id,
                "department": department,
            }
        )
        raw_json = await self._gateway.request("POST", "/auth/register", payload=payload)
        response = LoginResponse(_as_object(raw_json, "register"))
        _LOGGER.debug("Register response: %s", response)
        return response

    async def me(self) -> tuple[bool, Identity | None]:
        """
        Verify the current token and return the server-side identity.

        Corresponding CURL command:
        curl -X 'GET' '<api>/auth/me' -H 'Authorization: Bearer <token>'
        """
        raw_json = _as_object(await self._gateway.request("GET", "/auth/me"), "auth/me")
        return _identity_result(raw_json)

    async def verify_email(self, email: str, code: str) -> tuple[bool, Identity | None]:
        """
        Confirm an email address with the code sent at registration.

        Corresponding CURL command:
        curl -X 'POST' '<api>/auth/verify-email' -d '{"email": "...", "code": "123456"}'
        """
        raw_json = await self._gateway.request(
            "POST", "/auth/verify-email", payload={"email": email, "code": code}
        )
        return _identity_result(_as_object(raw_json, "verify-email"))

    async def resend_verification(self, email: str) -> bool:
        raw_json = await self._gateway.request(
            "POST", "/auth/resend-verification", payload={"email": email}
        )
        return bool(_as_object(raw_json, "resend-verification").get("success"))


def _as_object(raw_json: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw_json, Mapping):
        raise GatewayFailure(f"Unexpected {what} response from backend: expected an object")
    return raw_json


def _identity_result(raw_json: Mapping[str, Any]) -> tuple[bool, Identity | None]:
    """(success, identity) from a ``{"success": ..., "user": {...}}`` body; a malformed user raises GatewayFailure."""
    user = raw_json.get("user")
    identity = parse_item(parse_identity, user, "user") if user is not None else None
    return bool(raw_json.get("success")) and identity is not None, identity
