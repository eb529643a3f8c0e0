"""Client-side state layer for the JU activity management backend."""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Mapping, Optional

from .config import load_config
from .const import DOMAIN, VERSION
from .coordinator import ActivityCoordinator
from .coordinator_data import ActivityData
from .errors import (
    ActivityClientError,
    ConfigurationError,
    Forbidden,
    GatewayFailure,
    NotApproved,
    NotFound,
    Unauthenticated,
    UnsupportedOperation,
)
from .gateway import Gateway
from .session import SessionStore
from .storage import SessionStorage

__version__ = VERSION

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass
class ActivityRuntime:
    """Everything async_setup() wires together; hand it back to async_unload()."""

    gateway: Gateway
    session: SessionStore
    coordinator: ActivityCoordinator
    remove_identity_listener: Callable[[], None]


async def async_setup(
    config: Optional[Mapping[str, Any]] = None,
    navigate: Optional[Callable[[str], None]] = None,
) -> ActivityRuntime:
    """
    Build the gateway, session store and coordinator, restore the persisted
    session and load the first snapshot.
    """
    config = load_config(config)

    storage = SessionStorage(config['storage_path'])
    gateway = Gateway(config['api_url'], timeout=config['request_timeout'])
    session = SessionStore(gateway, storage, navigate=navigate)
    gateway.set_token_provider(lambda: session.token)

    coordinator = ActivityCoordinator(
        gateway,
        session,
        notifications_interval=config['notifications_interval'],
    )

    # Subscribed after restore so the first refresh is not scheduled twice
    await session.restore_session()
    remove_listener = session.add_listener(coordinator.handle_identity_changed)
    await coordinator.async_identity_changed(session.identity)

    _LOGGER.debug("%s runtime ready (identity: %s)", DOMAIN, session.identity.id if session.identity else None)
    return ActivityRuntime(gateway, session, coordinator, remove_listener)


async def async_unload(runtime: ActivityRuntime) -> None:
    """Detach listeners and stop every background task."""
    runtime.remove_identity_listener()
    await runtime.coordinator.async_shutdown()


__all__ = [
    "ActivityClientError",
    "ActivityCoordinator",
    "ActivityData",
    "ActivityRuntime",
    "ConfigurationError",
    "Forbidden",
    "Gateway",
    "GatewayFailure",
    "NotApproved",
    "NotFound",
    "SessionStorage",
    "SessionStore",
    "Unauthenticated",
    "UnsupportedOperation",
    "async_setup",
    "async_unload",
    "load_config",
]
