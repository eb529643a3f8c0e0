"""
Low-level user directory calls for the gateway.

Responsible for:
- Mapping user JSON onto Identity instances (and back, for local persistence)
- Directory listing and administrative user management
- Self-service profile, avatar and password updates
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

import aiohttp

from ju_activity.api.common import clean_params, parse_item, parse_items, to_payload
from ju_activity.const import ROLE_COORDINATOR, USER_ACTIVE
from ju_activity.errors import GatewayFailure
from ju_activity.models import Identity

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)

# Gateway key -> Identity field; joinedAt wins over the older createdAt
IDENTITY_KEYS = (
    ("id", "id"),
    ("name", "name"),
    ("email", "email"),
    ("role", "role"),
    ("department", "department"),
    ("studentId", "student_id"),
    ("avatar", "avatar"),
    ("status", "status"),
    ("createdAt", "joined_at"),
    ("joinedAt", "joined_at"),
)


def parse_identity(user: Mapping[str, Any]) -> Identity | None:
    """Map a single raw user dict onto an Identity instance."""
    if user.get("id") is None:
        _LOGGER.warning("User record without id (%s), skipping", user.get("email"))
        return None
    return Identity(
        id=str(user["id"]),
        name=user.get("name") or "",
        email=user.get("email") or "",
        role=user.get("role") or "",
        department=user.get("department"),
        student_id=user.get("studentId"),
        avatar=user.get("avatar"),
        status=user.get("status") or USER_ACTIVE,
        joined_at=user.get("joinedAt") or user.get("createdAt"),
    )


def parse_identity_changes(user: Any) -> dict[str, Any]:
    """
    Identity fields actually present (and non-empty) in a user response.

    Used to update a cached identity without resetting fields the response left out.
    """
    if not isinstance(user, Mapping):
        raise GatewayFailure("Unexpected user response from backend: expected an object")
    changes: dict[str, Any] = {}
    for key, field in IDENTITY_KEYS:
        value = user.get(key)
        if value in (None, ""):
            continue
        changes[field] = str(value) if field == "id" else value
    return changes


def identity_to_json(identity: Identity) -> dict[str, Any]:
    """Serialize an Identity into the same camelCase shape the gateway returns."""
    return {
        "id": identity.id,
        "name": identity.name,
        "email": identity.email,
        "role": identity.role,
        "department": identity.department,
        "studentId": identity.student_id,
        "avatar": identity.avatar,
        "status": identity.status,
        "joinedAt": identity.joined_at,
    }


def _avatar_form(avatar: str | Path | bytes, filename: str | None = None) -> aiohttp.FormData:
    if isinstance(avatar, (bytes, bytearray)):
        content = bytes(avatar)
        filename = filename or "avatar"
    else:
        path = Path(avatar)
        content = path.read_bytes()
        filename = filename or path.name
    form = aiohttp.FormData()
    form.add_field("file", content, filename=filename)
    return form


class UsersApi:
    """User directory endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def get_all(
        self,
        role: str | None = None,
        token: str | None = None,
        email: str | None = None,
    ) -> list[Identity]:
        """
        Fetch the user directory, optionally filtered by role or email.

        Corresponding CURL command:
        curl -X 'GET' '<api>/users?role=coordinator'
        """
        raw_json = await self._gateway.request(
            "GET", "/users", params=clean_params({"role": role, "email": email}), token=token
        )
        return parse_items(parse_identity, raw_json, "user")

    async def get_by_id(self, user_id: str) -> Identity:
        raw_json = await self._gateway.request("GET", f"/users/{user_id}")
        return parse_item(parse_identity, raw_json, "user")

    async def create(self, fields: Mapping[str, Any]) -> Identity:
        raw_json = await self._gateway.request("POST", "/users", payload=to_payload(fields))
        return parse_item(parse_identity, raw_json, "user")

    async def create_coordinator(
        self, name: str, email: str, password: str, department: str | None = None
    ) -> Identity:
        return await self.create(
            {
                "name": name,
                "email": email,
                "password": password,
                "role": ROLE_COORDINATOR,
                "department": department,
            }
        )

    async def update(self, user_id: str, fields: Mapping[str, Any]) -> Identity:
        raw_json = await self._gateway.request("PUT", f"/users/{user_id}", payload=to_payload(fields))
        return parse_item(parse_identity, raw_json, "user")

    async def get_me(self) -> Identity:
        raw_json = await self._gateway.request("GET", "/users/me")
        return parse_item(parse_identity, raw_json, "user")

    async def update_me(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """
        Update the signed-in user's own profile.

        Returns the identity fields present in the response (see parse_identity_changes).

        Corresponding CURL command:
        curl -X 'PATCH' '<api>/users/me' -d '{"name": "...", "department": "..."}'
        """
        raw_json = await self._gateway.request("PATCH", "/users/me", payload=to_payload(fields))
        return parse_identity_changes(raw_json)

    async def upload_my_avatar(self, avatar: str | Path | bytes, filename: str | None = None) -> dict[str, Any]:
        """
        Upload a new avatar image as multipart field ``file``; returns the changed identity fields.

        Corresponding CURL command:
        curl -X 'POST' '<api>/users/me/avatar' -F 'file=@avatar.png'
        """
        raw_json = await self._gateway.request(
            "POST", "/users/me/avatar", data=_avatar_form(avatar, filename)
        )
        return parse_identity_changes(raw_json)

    async def update_password(self, user_id: str, old_password: str, new_password: str) -> None:
        await self._gateway.request(
            "PATCH",
            f"/users/{user_id}/password",
            payload={"oldPassword": old_password, "newPassword": new_password},
        )

    async def update_my_password(self, old_password: str, new_password: str) -> None:
        await self._gateway.request(
            "PATCH",
            "/users/me/password",
            payload={"oldPassword": old_password, "newPassword": new_password},
        )

    async def toggle_status(self, user_id: str) -> None:
        await self._gateway.request("PATCH", f"/users/{user_id}/status")

    async def delete(self, user_id: str) -> None:
        await self._gateway.request("DELETE", f"/users/{user_id}")
