"""Dashboard plugin entry point."""

import logging
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from brains_core.commands import Command
from brains_core.messaging import Message
from brains_core.permissions import PermissionLevel
from brains_core.plugins.context import PluginContext

logger = logging.getLogger(__name__)

REGISTER_WIDGET_CHANNEL = "dashboard:register-widget"


class WidgetRegistration(BaseModel):
    """Payload of dashboard:register-widget."""

    id: str
    title: str
    data: Dict[str, Any] = Field(default_factory=dict)


class DashboardPlugin:
    """Consumer side of the widget channel.

    Subscribes during on_initialize, so producers must send from a
    system:plugins:ready handler (or depend on this plugin).
    """

    def __init__(self, context: PluginContext):
        self.context = context
        self.widgets: Dict[str, WidgetRegistration] = {}
        self.logger = context.get_logger()

    async def on_initialize(self) -> None:
        self.context.define_channel(REGISTER_WIDGET_CHANNEL, WidgetRegistration)
        self.context.subscribe(REGISTER_WIDGET_CHANNEL, self.handle_register_widget)
        self.context.register_command(
            Command(
                name="dashboard",
                description="List the widgets registered on the dashboard",
                visibility=PermissionLevel.TRUSTED,
                handler=self.list_widgets,
            )
        )

    def handle_register_widget(self, message: Message) -> Dict[str, str]:
        widget: WidgetRegistration = message.payload
        self.widgets[widget.id] = widget
        self.logger.info(f"Widget '{widget.id}' registered by {message.source}")
        return {"registered": widget.id}

    def list_widgets(self, args: List[str]) -> List[str]:
        return [widget.title for widget in self.widgets.values()]

    async def on_shutdown(self) -> None:
        self.widgets.clear()


def register(context: PluginContext) -> DashboardPlugin:
    """Plugin entry point - called by the plugin manager during initialization."""
    return DashboardPlugin(context)
