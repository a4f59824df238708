"""Startup command sequencer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from .exceptions import CharacteristicNotFoundError, SequenceAbortedError, WriteFailedError
from .models.connection import Connection
from .models.enums import Role
from .protocol.commands import CHUNK_DELAY, CHUNK_SIZE, STARTUP_SEQUENCE, SequenceStep
from .protocol.framing import chunk_frame, encode_hex
from .state_machine import ConnectionStateMachine
from .transport.base import Transport

_LOGGER = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class SequenceHandle:
    """Handle to one running initialization sequence."""

    def __init__(self, connection: Connection):
        self.connection = connection
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False

    def _bind(self, task: asyncio.Task[None]) -> None:
        self._task = task
        task.add_done_callback(self._on_done)

    @property
    def task(self) -> asyncio.Task[None]:
        if self._task is None:
            raise RuntimeError("Sequence handle not started")
        return self._task

    @property
    def cancelled(self) -> bool:
        """Whether cancel() was requested before the run finished."""
        return self._cancelled

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        """Stop the run at its next suspension point. Idempotent."""
        if self._cancelled or self.done():
            return
        self._cancelled = True
        # A run cancelled from inside its own write notices the flag once
        # the write returns
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the run to finish.

        Raises:
            SequenceAbortedError: If the run was cancelled
            BLEConnectionError: If a write failed
        """
        try:
            await asyncio.shield(self.task)
        except asyncio.CancelledError:
            if self.task.cancelled() and self._cancelled:
                raise SequenceAbortedError(
                    "Initialization sequence cancelled before it started"
                ) from None
            raise

    async def wait_finished(self) -> None:
        """Wait until the run has finished, whatever its outcome."""
        await asyncio.wait({self.task})

    def _on_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            _LOGGER.debug("Initialization sequence cancelled")
            return
        error = task.exception()
        if error is not None:
            _LOGGER.debug("Initialization sequence ended: %s", error)


class InitializationSequencer:
    """Sends the startup plan to a ready ball machine.

    Steps are sent in order. Each write waits for the transport's write
    completion; the next step additionally waits until its minimum delay has
    elapsed since the previous step was sent. Frames longer than the chunk
    size are written as paced chunks followed by an empty terminal chunk.
    """

    def __init__(
            self,
            state_machine: ConnectionStateMachine,
            transport: Transport,
            plan: Sequence[SequenceStep] = STARTUP_SEQUENCE,
            chunk_size: int = CHUNK_SIZE,
            chunk_delay: float = CHUNK_DELAY,
            sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize sequencer.

        Args:
            state_machine: State machine owning the connection
            transport: Transport performing the writes
            plan: Steps to send (default: STARTUP_SEQUENCE)
            chunk_size: Maximum bytes per write (default: 18)
            chunk_delay: Seconds between chunks (default: 0.1)
            sleep: Coroutine function used to wait out delays
        """
        self._state = state_machine
        self._transport = transport
        self.plan = tuple(plan)
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay
        self._sleep = sleep

    def run(self, connection: Connection) -> SequenceHandle:
        """Start sending the plan over connection.

        Any run already active for the connection is cancelled, and has
        finished, before the new run writes anything.

        Must be called from a running event loop.

        Returns:
            Handle to await or cancel the run
        """
        previous = self._state.active_run
        handle = SequenceHandle(connection)
        if previous is not None:
            _LOGGER.debug("Cancelling previous initialization sequence")
            previous.cancel()

        task = asyncio.get_running_loop().create_task(self._run(handle, previous))
        handle._bind(task)
        self._state.attach_run(handle)
        return handle

    async def _run(self, handle: SequenceHandle, previous: SequenceHandle | None) -> None:
        try:
            if previous is not None:
                await previous.wait_finished()

            self._check_alive(handle)
            self._state.sequencer_started()
            _LOGGER.info(
                "Starting initialization sequence for %s (%d steps)",
                handle.connection.device.identifier,
                len(self.plan),
            )

            loop = asyncio.get_running_loop()
            last_sent: float | None = None
            for number, step in enumerate(self.plan, start=1):
                if last_sent is not None:
                    remaining = step.delay - (loop.time() - last_sent)
                    if remaining > 0:
                        await self._sleep(remaining)
                    self._check_alive(handle)

                last_sent = loop.time()
                _LOGGER.debug(
                    "Step %d/%d: %s %s",
                    number,
                    len(self.plan),
                    step.role.value,
                    encode_hex(step.frame),
                )
                await self._send_step(handle, step)

            self._state.sequencer_completed()
            _LOGGER.info("Initialization sequence complete")
        except asyncio.CancelledError:
            if not handle.cancelled:
                raise
            raise SequenceAbortedError(
                "Initialization sequence cancelled", state=self._state.state
            ) from None

    async def _send_step(self, handle: SequenceHandle, step: SequenceStep) -> None:
        if len(step.frame) <= self.chunk_size:
            await self._write(handle, step.role, step.frame.data)
            return

        plan = chunk_frame(step.frame, self.chunk_size)
        for chunk in plan:
            if chunk.index:
                await self._sleep(self.chunk_delay)
                self._check_alive(handle)
            _LOGGER.debug(
                "Chunk %d/%d: %d bytes%s",
                chunk.index + 1,
                len(plan),
                len(chunk),
                " (terminal)" if chunk.terminal else "",
            )
            await self._write(handle, step.role, chunk.data)

    async def _write(self, handle: SequenceHandle, role: Role, data: bytes) -> None:
        if not self._state.can_write:
            raise SequenceAbortedError(
                "Writes not allowed", state=self._state.state
            )
        target = self._resolve(role)

        try:
            await self._transport.write(target, data, with_response=True)
        except WriteFailedError as e:
            if handle.cancelled or self._state.connection is not handle.connection:
                raise SequenceAbortedError(
                    "Initialization sequence cancelled", state=self._state.state
                ) from e
            self._state.write_failed(e)

        self._check_alive(handle)

    def _resolve(self, role: Role) -> Any:
        try:
            return self._state.resolver.resolve(role)
        except CharacteristicNotFoundError as e:
            raise SequenceAbortedError(
                f"Lost {role.value} characteristic", state=self._state.state
            ) from e

    def _check_alive(self, handle: SequenceHandle) -> None:
        if handle.cancelled or self._state.connection is not handle.connection:
            raise SequenceAbortedError(
                "Initialization sequence cancelled", state=self._state.state
            )
