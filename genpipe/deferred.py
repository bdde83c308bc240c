from __future__ import annotations
import asyncio
from typing import Any, Callable, Generator, Generic, TypeVar

T = TypeVar("T")


class Deferred(Generic[T]):
    """One-shot future, resolved or failed exactly once.

    Awaitable directly (``await d``) or through ``await_()``.
    """
    def __init__(self) -> None:
        self._f: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    @staticmethod
    def resolved(value: T) -> "Deferred[T]":
        d: Deferred[T] = Deferred()
        d.succeed(value)
        return d

    @staticmethod
    def failed(ex: BaseException) -> "Deferred[Any]":
        d: Deferred[Any] = Deferred()
        d.fail(ex)
        return d

    def done(self) -> bool:
        return self._f.done()

    def usable(self) -> bool:
        return not self._f.done() and not self._f.get_loop().is_closed()

    async def await_(self) -> T:
        return await self._f

    def __await__(self) -> Generator[Any, None, T]:
        return self._f.__await__()

    def result(self) -> T:
        return self._f.result()

    def on_complete(self, cb: Callable[["Deferred[T]"], None]) -> None:
        self._f.add_done_callback(lambda _f: cb(self))

    def try_succeed(self, value: T) -> bool:
        if not self.usable():
            return False
        self._f.set_result(value)
        return True

    def succeed(self, value: T) -> None:
        if not self.try_succeed(value):
            raise RuntimeError("Deferred already completed")

    def try_fail(self, ex: BaseException) -> bool:
        if not self.usable():
            return False
        self._f.set_exception(ex)
        return True

    def fail(self, ex: BaseException) -> None:
        if not self.try_fail(ex):
            raise RuntimeError("Deferred already completed")

    def mark_retrieved(self) -> None:
        # keeps asyncio from logging "exception was never retrieved"
        if self._f.done() and not self._f.cancelled():
            self._f.exception()
