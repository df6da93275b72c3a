"""System info plugin entry point."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from brains_core.commands import Command
from brains_core.constants import SYSTEM_READY_CHANNEL
from brains_core.messaging import Message
from brains_core.permissions import PermissionLevel
from brains_core.plugins.context import PluginContext
from brains_core.plugins.hooks import LifecycleHooks

logger = logging.getLogger(__name__)

WIDGET_CHANNEL = "dashboard:register-widget"


def register(context: PluginContext) -> LifecycleHooks:
    """Plugin entry point.

    Has no dependency on the dashboard, so its widget is sent from the
    system-ready handler, when every consumer has subscribed.
    """
    state: Dict[str, Any] = {"started_at": None, "plugins": []}

    async def on_system_ready(message: Message) -> None:
        state["plugins"] = list(message.payload.get("plugins", []))
        response = await context.send(
            WIDGET_CHANNEL,
            {
                "id": "system-info",
                "title": "System",
                "data": {"plugins": state["plugins"]},
            },
        )
        if not response.handled:
            logger.info("No dashboard listening, widget not published")
        elif not response.success:
            logger.warning(f"Dashboard rejected widget: {response.error}")

    def status(args: List[str]) -> Dict[str, Any]:
        started_at = state["started_at"]
        return {
            "started_at": started_at.isoformat() if started_at else None,
            "plugins": state["plugins"],
        }

    def on_initialize() -> None:
        state["started_at"] = datetime.now(timezone.utc)
        context.subscribe(SYSTEM_READY_CHANNEL, on_system_ready)
        context.register_command(
            Command(
                name="status",
                description="Show runtime start time and loaded plugins",
                visibility=PermissionLevel.PUBLIC,
                handler=status,
            )
        )

    return LifecycleHooks(on_initialize=on_initialize)
