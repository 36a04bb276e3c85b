"""Route decoded frames to caller callbacks."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .framing import Frame
from .schema import DATA_MESSAGE_STANZA, LOGIN_RESPONSE, Schema
from .state import SessionStateMachine

_LOGGER = logging.getLogger(__name__)

MessageCallback = Callable[[Any], Awaitable[None] | None]


class MessageDispatcher:
    """Resolve frames against the schema and schedule callbacks.

    Callbacks never run inside ``dispatch``; they are posted to the event
    loop's ready queue so a callback cannot re-enter the socket reader.
    """

    def __init__(
        self,
        schema: Schema,
        state_machine: SessionStateMachine,
        *,
        notification_callback: MessageCallback | None = None,
        login_callback: MessageCallback | None = None,
    ) -> None:
        self._schema = schema
        self._state = state_machine
        self._notification_callback = notification_callback
        self._login_callback = login_callback
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def name(self) -> str:
        return self._state.name

    def dispatch(self, frame: Frame) -> Any | None:
        """Decode one frame and schedule the matching callback.

        Returns:
            The decoded message, or None if the frame was dropped
        """
        entry = self._schema.by_tag(frame.tag)
        if entry is None:
            _LOGGER.info("[%s] Unable to find tag id %d", self.name, frame.tag)
            return None

        try:
            message = entry.decode(frame.payload)
        except Exception as err:
            _LOGGER.warning(
                "[%s] Error decoding %s (%d bytes) %s: %s",
                self.name,
                entry.name,
                frame.length,
                frame.payload.hex(),
                err,
            )
            return None

        _LOGGER.debug("[%s] Received %s: %s", self.name, entry.name, message)

        if entry.name == DATA_MESSAGE_STANZA:
            self._schedule(self._notification_callback, message)
        elif entry.name == LOGIN_RESPONSE:
            self._state.login_completed()
            self._schedule(self._login_callback, message)

        return message

    def _schedule(self, callback: MessageCallback | None, message: Any) -> None:
        if callback is None:
            return
        asyncio.get_running_loop().call_soon(self._invoke, callback, message)

    def _invoke(self, callback: MessageCallback, message: Any) -> None:
        try:
            result = callback(message)
        except Exception as err:
            _LOGGER.exception("[%s] Callback error: %s", self.name, err)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error("[%s] Callback error: %s", self.name, err, exc_info=err)
