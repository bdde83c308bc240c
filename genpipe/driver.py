from __future__ import annotations
import asyncio
import inspect
from typing import Any, Callable, Generic, Optional, TypeVar

from .channel import END, BackpressureChannel
from .deferred import Deferred
from .errors import DisposedException, GeneratorCreationError, Interrupted
from .exit import Exit
from .logger import ConsoleLogger
from .runtime import Fiber, spawn
from .steps import StepCoroutine, as_steps

T = TypeVar("T"); S = TypeVar("S"); R = TypeVar("R")

_STATUS = {"running": "running", "done": "completed", "failed": "failed",
           "cancelled": "failed", "disposed": "disposed"}


async def _drive(steps: StepCoroutine, channel: BackpressureChannel[Any, Any],
                 log: Optional[ConsoleLogger]) -> Any:
    if log: await log.debug("generator started")
    try:
        yielded = await steps.current()
        while not steps.finished:
            try:
                injected = await channel.emit(yielded)
            except DisposedException:
                if log: await log.debug("generator disposed")
                await steps.close()
                raise
            except Exception as ex:
                yielded = await steps.throw(ex)
            else:
                yielded = await steps.send(injected)
    except DisposedException:
        raise
    except asyncio.CancelledError:
        if log: await log.debug("generator interrupted")
        raise
    except Exception as ex:
        if log: await log.error("generator failed", error=repr(ex))
        raise
    if log: await log.debug("generator returned")
    return steps.result


def _settle(channel: BackpressureChannel[Any, Any]) -> Callable[[Exit[Any]], None]:
    def on_exit(exit_: Exit[Any]) -> None:
        if channel.is_disposed():
            return
        if exit_.success:
            channel.complete()
            return
        assert exit_.cause is not None
        if exit_.cause.kind == "interrupt":
            channel.fail(Interrupted())
        else:
            assert exit_.cause.error is not None
            channel.fail(exit_.cause.error)
    return on_exit


class GeneratorDriver(Generic[T, S, R]):
    """Consume a generator asynchronously, one acknowledged item at a time.

    ``fn(*args, **kwargs)`` must return a generator, an async generator or a
    ``StepCoroutine``. The driver loop starts right away on the running event
    loop; each yielded value waits in a single-slot channel until the
    consumer pulls it with ``continue_()`` and answers with ``send()`` or
    ``throw()``. The answer becomes the value of the ``yield`` expression, or
    is raised at it.

    Args:
        fn: Callable producing the generator
        *args: Positional arguments passed to ``fn``
        name: Optional name for debugging and log records
        logger: Optional ConsoleLogger for lifecycle events
        **kwargs: Keyword arguments passed to ``fn``

    Raises:
        GeneratorCreationError: if ``fn`` raises
        TypeError: if ``fn`` does not return a generator
        RuntimeError: if no event loop is running; ``fn`` is not called

    Example:
        ```python
        def numbers():
            total = 0
            for i in range(3):
                total += (yield i) or 0
            return total

        gen = GeneratorDriver(numbers)
        while (item := await gen.continue_()) is not END:
            gen.send(item * 10)
        print(await gen.get_return())  # 30
        ```
    """
    def __init__(self, fn: Callable[..., Any], *args: Any, name: Optional[str] = None,
                 logger: Optional[ConsoleLogger] = None, **kwargs: Any):
        self._channel: BackpressureChannel[T, S] = BackpressureChannel()
        asyncio.get_running_loop()  # raises before fn runs when no loop is running
        try:
            generator = fn(*args, **kwargs)
        except Exception as ex:
            raise GeneratorCreationError("The callable threw an exception") from ex
        try:
            steps = as_steps(generator)
        except TypeError:
            if inspect.iscoroutine(generator):
                generator.close()
            raise
        self.name = name or getattr(fn, "__qualname__", None)
        log = logger.bind(generator=self.name) if logger is not None else None
        self._fiber: Fiber[R] = spawn(_drive(steps, self._channel, log), name=self.name)
        self._fiber.on_exit(_settle(self._channel))

    def __del__(self) -> None:
        channel = getattr(self, "_channel", None)
        if channel is not None:
            channel.destroy()

    @property
    def status(self) -> str:
        if self._fiber.status == "running" and self._channel.is_disposed():
            return "disposed"
        return _STATUS[self._fiber.status]

    def continue_(self) -> Deferred[Any]:
        """Pull the next item; resolves with ``END`` once the generator is done."""
        return self._channel.pull()

    def send(self, value: S) -> None:
        """Acknowledge the last item, resuming the generator with ``value``.

        The first item must be retrieved with ``continue_()`` beforehand.
        """
        self._channel.send(value)

    def throw(self, error: Exception) -> None:
        """Acknowledge the last item by raising ``error`` inside the generator.

        Raises:
            TypeError: if ``error`` is not an ``Exception``
        """
        self._channel.throw(error)

    def asend(self, value: S) -> Deferred[Any]:
        self.send(value)
        return self.continue_()

    def athrow(self, error: Exception) -> Deferred[Any]:
        self.throw(error)
        return self.continue_()

    def dispose(self) -> None:
        """Tell the generator the consumer has lost interest.

        The generator is closed at its current yield (its ``finally`` blocks
        run) and pending or later pulls resolve with ``END``.
        """
        self._channel.dispose()

    def destroy(self) -> None:
        self._channel.destroy()

    async def get_return(self) -> Optional[R]:
        """Wait for the generator to finish and return its return value.

        Returns None if the pipeline was disposed.

        Raises:
            Exception: whatever the generator raised
            Interrupted: if the driver task was cancelled
        """
        exit_ = await self._fiber.await_()
        if exit_.success:
            return exit_.value
        assert exit_.cause is not None
        if exit_.cause.kind == "dispose":
            return None
        if exit_.cause.kind == "interrupt":
            raise Interrupted()
        assert exit_.cause.error is not None
        raise exit_.cause.error

    async def await_(self) -> Exit[R]:
        return await self._fiber.await_()

    def __aiter__(self) -> "GeneratorDriver[T, S, R]":
        return self

    async def __anext__(self) -> T:
        item = await self.continue_()
        if item is END:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "GeneratorDriver[T, S, R]":
        return self

    async def __aexit__(self, et, e, tb) -> None:
        self.dispose()
