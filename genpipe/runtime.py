from __future__ import annotations
import asyncio
import inspect
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar
import uuid

from .errors import DisposedException
from .exit import Cause, Exit

A = TypeVar("A")


class Fiber(Generic[A]):
    """A background task with a structured exit.

    Fibers are the unit of concurrent work a generator driver runs its loop
    in. The outcome is recorded as an ``Exit`` when the task finishes, and
    exit callbacks registered with ``on_exit()`` run exactly once.

    Attributes:
        id: Unique identifier for this fiber
        name: Optional name for debugging
        status: ``'running'``, ``'done'``, ``'failed'``, ``'disposed'`` or
            ``'cancelled'``
    """
    def __init__(self, task: asyncio.Task, name: Optional[str] = None):
        self._task = task
        self.id: str = uuid.uuid4().hex
        self.name: Optional[str] = name
        self._status: str = "running"
        self._exit: Optional[Exit[A]] = None
        self._callbacks: List[Callable[[Exit[A]], None]] = []
        task.add_done_callback(self._on_done)

    @property
    def status(self) -> str:
        return self._status

    def done(self) -> bool:
        return self._exit is not None

    def _on_done(self, t: asyncio.Task) -> None:
        if self._exit is not None:
            return
        if t.cancelled():
            self._status = "cancelled"
            exit_: Exit[A] = Exit(success=False, cause=Cause.interrupt())
        else:
            ex = t.exception()
            if ex is None:
                self._status = "done"
                exit_ = Exit(success=True, value=t.result())
            elif isinstance(ex, DisposedException):
                self._status = "disposed"
                exit_ = Exit(success=False, cause=Cause.dispose())
            else:
                self._status = "failed"
                exit_ = Exit(success=False, cause=Cause.fail(ex))
        self._exit = exit_
        callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            cb(exit_)

    def on_exit(self, cb: Callable[[Exit[A]], None]) -> None:
        """Run ``cb`` with the fiber's Exit once it finishes.

        If the fiber already finished the callback runs immediately.
        """
        if self._exit is not None:
            cb(self._exit)
        else:
            self._callbacks.append(cb)

    async def await_(self) -> Exit[A]:
        """Wait for this fiber to complete and get the structured result.

        Example:
            ```python
            fiber = spawn(produce())
            exit_ = await fiber.await_()

            if exit_.success:
                print(f"Success: {exit_.value}")
            else:
                print(f"Failure: {exit_.cause.render()}")
            ```
        """
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.done():
                raise
        except BaseException:
            pass
        if self._exit is None:
            self._on_done(self._task)
        assert self._exit is not None
        return self._exit

    async def join(self) -> A:
        """Wait for this fiber and return its value, re-raising its failure."""
        return await self._task

    def interrupt(self) -> None:
        self._task.cancel()


def spawn(coro: Awaitable[A], name: Optional[str] = None) -> Fiber[A]:
    """Start ``coro`` as a background task on the running loop.

    Raises:
        RuntimeError: if no event loop is running
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(coro):
            coro.close()
        raise

    async def runner() -> Any:
        return await coro

    task = loop.create_task(runner(), name=name)
    return Fiber(task, name=name)
