"""Named-channel message bus used for plugin-to-plugin calls."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from brains_core.errors import ChannelHandlerError
from brains_core.messaging.models import Message, MessageResponse

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], Any]


@dataclass(eq=False)
class _Subscription:
    channel: str
    handler: MessageHandler


class MessageBus:
    """Single-consumer command dispatch over named channels.

    Only the first-registered handler of a channel answers a regular send;
    callers wanting fan-out use broadcast=True or distinct channel names.
    A handler only receives messages sent after it subscribed.
    """

    def __init__(self):
        self._handlers: Dict[str, List[_Subscription]] = {}
        self._schemas: Dict[str, Type[BaseModel]] = {}

    def define_channel(self, channel: str, schema: Type[BaseModel]) -> Callable[[], None]:
        """Declare the payload model expected on a channel.

        Returns:
            Disposer that removes the schema, unless it was redefined since
        """
        self._schemas[channel] = schema
        logger.debug(f"Defined channel '{channel}' with schema {schema.__name__}")

        def undefine() -> None:
            if self._schemas.get(channel) is schema:
                del self._schemas[channel]
                logger.debug(f"Removed schema for channel: {channel}")

        return undefine

    def get_schema(self, channel: str) -> Optional[Type[BaseModel]]:
        return self._schemas.get(channel)

    def subscribe(self, channel: str, handler: MessageHandler) -> Callable[[], None]:
        """Register a handler for a channel.

        Returns:
            Disposer that removes this subscription (safe to call twice)
        """
        subscription = _Subscription(channel, handler)
        self._handlers.setdefault(channel, []).append(subscription)
        logger.debug(f"Registered handler for channel: {channel}")

        def unsubscribe() -> None:
            handlers = self._handlers.get(channel)
            if not handlers or subscription not in handlers:
                return
            handlers.remove(subscription)
            if not handlers:
                del self._handlers[channel]
            logger.debug(f"Removed handler for channel: {channel}")

        return unsubscribe

    async def send(
        self,
        channel: str,
        payload: Any,
        source: str,
        target: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        broadcast: bool = False,
    ) -> MessageResponse:
        """Send a payload to a channel and return the handler's response.

        Args:
            channel: Channel name, by convention `domain:action`
            payload: Message payload (validated if the channel has a schema)
            source: Sender identifier
            target: Optional intended recipient
            metadata: Optional extra metadata
            broadcast: Deliver to every handler instead of only the first

        Returns:
            MessageResponse; never raises for handler failures
        """
        schema = self._schemas.get(channel)
        if schema is not None:
            try:
                payload = schema.model_validate(payload)
            except ValidationError as e:
                logger.warning(f"Invalid payload for channel '{channel}' from {source}: {e}")
                return MessageResponse.failure(
                    f"Invalid payload for channel '{channel}': {e}", handled=False
                )

        message = Message(
            channel=channel,
            payload=payload,
            source=source,
            target=target,
            metadata=metadata or {},
        )

        # Snapshot so handlers may (un)subscribe while being dispatched
        subscriptions = list(self._handlers.get(channel, []))
        if not subscriptions:
            logger.debug(f"No handlers for channel '{channel}', message {message.id} accepted as no-op")
            return MessageResponse.noop()

        logger.debug(
            f"Dispatching {message.id} on '{channel}' from {source} "
            f"({'broadcast' if broadcast else 'first handler'})"
        )

        if broadcast:
            return await self._broadcast(message, subscriptions)
        return await self._dispatch(message, subscriptions[0])

    async def _dispatch(self, message: Message, subscription: _Subscription) -> MessageResponse:
        try:
            result = subscription.handler(message)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            error = ChannelHandlerError(message.channel, e)
            logger.error(str(error), exc_info=True)
            return MessageResponse.failure(str(error))

        if isinstance(result, MessageResponse):
            return result
        return MessageResponse(success=True, handled=True, data=result)

    async def _broadcast(self, message: Message, subscriptions: List[_Subscription]) -> MessageResponse:
        errors = []
        for subscription in subscriptions:
            response = await self._dispatch(message, subscription)
            if not response.success and response.error:
                errors.append(response.error)

        if errors:
            return MessageResponse.failure("; ".join(errors))
        return MessageResponse(success=True, handled=True)

    def has_handlers(self, channel: str) -> bool:
        return bool(self._handlers.get(channel))

    def get_handler_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))

    def clear_handlers(self, channel: str) -> None:
        """Remove every handler for a channel."""
        if self._handlers.pop(channel, None) is not None:
            logger.info(f"Cleared all handlers for channel: {channel}")

    def clear_all_handlers(self) -> None:
        self._handlers.clear()
        logger.info("Cleared all message handlers")
