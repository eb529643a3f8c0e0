"""
SessionStore: tracks the signed-in identity and the cached user directory.

Responsibilities:
- Restore a persisted session on startup, preferring the server-verified identity.
- Sign in, register and sign out, persisting identity and token through SessionStorage.
- Profile and password changes for the current identity.
- Administrative user management, each followed by a full directory re-fetch.
- Notify listeners (the activity coordinator) whenever the identity changes.
"""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from .const import (
    AUTH_ANONYMOUS,
    AUTH_AUTHENTICATED,
    ENTRY_PATH,
    PROFILE_FIELDS,
    REJECTED_TOKEN_STATUSES,
    ROLE_ADMIN,
)
from .errors import GatewayFailure, Unauthenticated
from .gateway import Gateway
from .models import Identity
from .storage import SessionStorage, StoredSessionError

_LOGGER = logging.getLogger(__name__)

IdentityListener = Callable[["Identity | None"], None]


class SessionStore:
    """Holds the current identity; the only writer of the persisted session."""

    def __init__(
        self,
        gateway: Gateway,
        storage: SessionStorage,
        navigate: Callable[[str], None] | None = None,
    ) -> None:
        self.gateway = gateway
        self._storage = storage
        self._navigate = navigate
        self._listeners: list[IdentityListener] = []

        self.identity: Identity | None = None
        self.users: tuple[Identity, ...] = ()
        self.auth_state: str = AUTH_ANONYMOUS
        # False until restore_session() has finished, whatever its outcome
        self.is_hydrated: bool = False

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def token(self) -> str | None:
        try:
            return self._storage.load_token()
        except StoredSessionError as exc:
            _LOGGER.debug("No usable token in storage: %s", exc)
            return None

    @property
    def is_authenticated(self) -> bool:
        return self.auth_state == AUTH_AUTHENTICATED

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Call listener(identity) on every identity change; returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def restore_session(self) -> Identity | None:
        """
        Rebuild the session from storage.

        With a stored token the identity is verified with the gateway: a
        verified identity replaces the stored one, a rejected token clears the
        session, and an unreachable gateway falls back to the stored identity.
        """
        try:
            identity = await self._restore()
        finally:
            self.is_hydrated = True

        if identity is not None and identity.role == ROLE_ADMIN:
            await self.refresh_users()
        return identity

    async def _restore(self) -> Identity | None:
        try:
            stored = self._storage.load_identity()
            token = self._storage.load_token()
        except StoredSessionError as exc:
            _LOGGER.error("Failed to load user from storage: %s", exc)
            self._storage.clear()
            self._set_identity(None)
            return None

        if stored is None:
            self._set_identity(None)
            return None

        if not token:
            # Legacy session without a token; keep the stored user
            self._set_identity(stored)
            return stored

        try:
            success, verified = await self.gateway.auth.me()
        except GatewayFailure as exc:
            if exc.status in REJECTED_TOKEN_STATUSES:
                _LOGGER.info("Stored token rejected by backend: %s", exc)
                self._storage.clear()
                self._set_identity(None)
                return None
            _LOGGER.warning("Failed to verify token with backend: %s", exc)
            self._set_identity(stored)
            return stored

        if not success or verified is None:
            self._storage.clear()
            self._set_identity(None)
            return None

        self._storage.save_identity(verified)
        self._set_identity(verified)
        return verified

    async def login(self, email: str, password: str) -> Identity:
        """Sign in and persist the returned identity and token."""
        response = await self.gateway.auth.login(email.strip().lower(), password)
        if not response.success or response.identity is None:
            raise GatewayFailure("Invalid email or password")

        self._storage.save_session(response.identity, response.token)
        self._set_identity(response.identity)
        if response.identity.role == ROLE_ADMIN:
            await self.refresh_users()
        return response.identity

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        student_id: str | None = None,
        department: str | None = None,
    ) -> Identity:
        """Create a student account and sign it in, persisting identity and token like login()."""
        response = await self.gateway.auth.register(
            name.strip(),
            email.strip().lower(),
            password,
            student_id=student_id.strip() if student_id else None,
            department=department,
        )
        if not response.success or response.identity is None:
            raise GatewayFailure("Unable to register. Please try again.")

        self._storage.save_session(response.identity, response.token)
        self._set_identity(response.identity)
        return response.identity

    async def verify_email(self, email: str, code: str) -> Identity:
        """Confirm a registered email; the verified identity becomes the signed-in one."""
        success, identity = await self.gateway.auth.verify_email(email.strip().lower(), code.strip())
        if not success or identity is None:
            raise GatewayFailure("Verification failed")

        self._storage.save_identity(identity)
        self._set_identity(identity)
        return identity

    async def resend_verification(self, email: str) -> bool:
        return await self.gateway.auth.resend_verification(email.strip().lower())

    async def logout(self) -> None:
        """Forget identity and token locally and send the user back to the entry page."""
        self._storage.clear()
        self.users = ()
        self._set_identity(None)
        if self._navigate is not None:
            self._navigate(ENTRY_PATH)

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    async def update_profile(
        self,
        fields: Mapping[str, Any],
        avatar: str | Path | bytes | None = None,
    ) -> Identity:
        """
        Update name/email/department/student_id, then optionally upload an avatar.

        The field update is merged and persisted before the avatar upload, so an
        avatar failure leaves the new fields in place and still raises.
        """
        identity = self._require_identity("update your profile")

        ignored = set(fields) - set(PROFILE_FIELDS)
        if ignored:
            _LOGGER.debug("Ignoring non-profile fields: %s", sorted(ignored))
        payload = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}

        changes = await self.gateway.users.update_me(payload)
        identity = self._merge_identity(identity, changes)

        if avatar is not None:
            changes = await self.gateway.users.upload_my_avatar(avatar)
            identity = self._merge_identity(identity, changes)
        return identity

    async def change_password(self, old_password: str, new_password: str) -> None:
        self._require_identity("change your password")
        await self.gateway.users.update_my_password(old_password, new_password)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def refresh_users(self) -> None:
        """Re-fetch the whole user directory; skipped when there is no token to send."""
        token = self.token
        if not token:
            _LOGGER.warning("Skipping user directory sync: missing auth token")
            return

        try:
            users = await self.gateway.users.get_all(token=token)
        except GatewayFailure as exc:
            _LOGGER.warning("Could not fetch users from backend: %s", exc)
            return
        self.users = tuple(users)

    async def delete_user(self, user_id: str) -> None:
        await self.gateway.users.delete(user_id)
        await self.refresh_users()

    async def create_coordinator(
        self,
        full_name: str,
        email: str,
        password: str,
        department: str | None = None,
    ) -> None:
        await self.gateway.users.create_coordinator(full_name, email, password, department)
        await self.refresh_users()

    async def toggle_user_status(self, user_id: str) -> None:
        await self.gateway.users.toggle_status(user_id)
        await self.refresh_users()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_identity(self, action: str) -> Identity:
        if self.identity is None:
            raise Unauthenticated(f"You must be logged in to {action}.")
        return self.identity

    def _merge_identity(self, current: Identity, changes: Mapping[str, Any]) -> Identity:
        """Overlay the fields a gateway response carried onto the cached identity and persist it."""
        merged = dataclasses.replace(current, **changes)
        self._storage.save_identity(merged)
        self._set_identity(merged)
        return merged

    def _set_identity(self, identity: Identity | None) -> None:
        changed = identity != self.identity
        self.identity = identity
        self.auth_state = AUTH_AUTHENTICATED if identity is not None else AUTH_ANONYMOUS
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Identity listener failed: %s", exc)
