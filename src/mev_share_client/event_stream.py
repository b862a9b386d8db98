#!/usr/bin/env python3
"""Consumption loop for the MEV-Share server-sent event stream.

The dispatcher opens one SSE connection, decodes every message into a
``RawEvent``, projects it into a ``PendingTransaction`` or ``PendingBundle``
and hands it to the single registered handler. Malformed messages are logged
and skipped. Connection failures end the loop with ``TransportError`` and are
not retried. Exceptions raised by the handler are not caught; they end the
loop and propagate to the caller of ``listen``.
"""

import asyncio
import inspect
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from typing import Any

import httpx
from httpx_sse import ServerSentEvent, SSEError, aconnect_sse

from .errors import TransportError
from .events import PendingTxOrBundle, RawEvent, StreamingEventType, project_event

EventHandler = Callable[[PendingTxOrBundle], Awaitable[Any] | Any]


class EventStreamDispatcher:
    """
    Delivers events from one MEV-Share stream endpoint to one handler.

    Features:
    - One handler and one event type per running loop
    - Handler calls are strictly sequential, the next message is read only
      after the handler (and any awaitable it returns) has finished
    - Decode failures are counted and skipped
    """

    def __init__(
        self,
        stream_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the EventStreamDispatcher.

        Args:
            stream_url: MEV-Share stream endpoint
            client: Optional shared httpx client (a private one is created per loop otherwise)
            timeout: Connect/write timeout in seconds; reads never time out
        """
        self.stream_url = stream_url
        self.timeout = timeout
        self._client = client

        # only one loop may own the handler at a time
        self._handler_slot = asyncio.Lock()
        self.event_type: StreamingEventType | None = None

        # Metrics tracking
        self.events_received = 0
        self.events_dispatched = 0
        self.events_invalid = 0

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def is_running(self) -> bool:
        return self._handler_slot.locked()

    async def listen(self, event_type: StreamingEventType, handler: EventHandler) -> None:
        """
        Stream events and call ``handler`` for each one until the stream ends.

        Args:
            event_type: Projection to deliver (transactions or bundles)
            handler: Callable receiving each projected event; may be async

        Raises:
            RuntimeError: If this dispatcher is already running a loop
            TransportError: If the connection fails or drops with an error
        """
        if self._handler_slot.locked():
            raise RuntimeError(
                f"Dispatcher for {self.stream_url} is already listening for "
                f"{self.event_type.as_str() if self.event_type else 'events'}"
            )

        async with self._handler_slot:
            self.event_type = event_type
            self.logger.info(f"Listening for {event_type.as_str()} events")
            try:
                await self._run(event_type, handler)
            finally:
                self.event_type = None
                self.log_metrics()

    async def _run(self, event_type: StreamingEventType, handler: EventHandler) -> None:
        client = self._client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, read=None)
        )
        try:
            async with aclosing(self._messages(client)) as messages:
                async for message in messages:
                    event = self._decode(message)
                    if event is None:
                        continue

                    result = handler(project_event(event, event_type))
                    if inspect.isawaitable(result):
                        await result
                    self.events_dispatched += 1
        finally:
            if self._client is None:
                await client.aclose()

        self.logger.info(f"Event stream at {self.stream_url} ended")

    async def _messages(self, client: httpx.AsyncClient) -> AsyncIterator[ServerSentEvent]:
        """Yield raw SSE messages, translating connection failures."""
        try:
            async with aconnect_sse(client, "GET", self.stream_url) as event_source:
                event_source.response.raise_for_status()
                self.logger.info(f"Connected to Flashbots Matchmaker at {self.stream_url}")

                async for message in event_source.aiter_sse():
                    yield message
        except (httpx.HTTPError, SSEError) as e:
            self.logger.error(f"Event stream at {self.stream_url} failed: {e}")
            raise TransportError(
                f"Event stream failed: {e}", original_error=e, endpoint=self.stream_url
            ) from e

    def _decode(self, message: ServerSentEvent) -> RawEvent | None:
        """Decode one SSE message, returning None if it should be skipped."""
        if not message.data:
            return None

        self.events_received += 1
        try:
            return RawEvent.from_dict(json.loads(message.data))
        except (ValueError, TypeError) as e:
            self.events_invalid += 1
            self.logger.warning(f"Skipping malformed event: {e}")
            self.logger.debug(f"Malformed event payload: {message.data[:200]}")
            return None

    def log_metrics(self) -> None:
        """Log the current dispatch metrics."""
        self.logger.info(
            f"Event stream metrics - Received: {self.events_received}, "
            f"Dispatched: {self.events_dispatched}, "
            f"Invalid: {self.events_invalid}"
        )
