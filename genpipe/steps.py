from __future__ import annotations
import inspect
from typing import Any, AsyncGenerator, Callable, Generator, Protocol, runtime_checkable

from .errors import ProtocolError


@runtime_checkable
class StepCoroutine(Protocol):
    """A producer advanced one yield at a time.

    ``current()`` returns the value at the current yield point (starting the
    producer on first use), ``send()``/``throw()`` resume it with a value or
    an error and return the next yielded value. Once ``finished`` is true,
    ``result`` holds the return value.
    """
    @property
    def finished(self) -> bool: ...
    @property
    def result(self) -> Any: ...
    async def current(self) -> Any: ...
    async def send(self, value: Any) -> Any: ...
    async def throw(self, error: BaseException) -> Any: ...
    async def close(self) -> None: ...


class GeneratorSteps:
    def __init__(self, gen: Generator[Any, Any, Any]):
        self._gen = gen
        self._started = False
        self._finished = False
        self._current: Any = None
        self._result: Any = None

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def result(self) -> Any:
        if not self._finished:
            raise ProtocolError("The generator has not returned yet")
        return self._result

    def _step(self, resume: Callable[[], Any]) -> Any:
        self._started = True
        try:
            self._current = resume()
        except StopIteration as stop:
            self._finished = True
            self._current = None
            self._result = stop.value
        except BaseException:
            self._finished = True
            self._current = None
            raise
        return self._current

    async def current(self) -> Any:
        if not self._started:
            return self._step(lambda: next(self._gen))
        return self._current

    async def send(self, value: Any) -> Any:
        await self.current()
        if self._finished:
            return None
        return self._step(lambda: self._gen.send(value))

    async def throw(self, error: BaseException) -> Any:
        await self.current()
        if self._finished:
            raise error
        return self._step(lambda: self._gen.throw(error))

    async def close(self) -> None:
        self._finished = True
        self._gen.close()


class AsyncGeneratorSteps:
    """Adapter for async generators, which may await between yields.

    Async generators cannot return a value, so ``result`` is always None.
    """
    def __init__(self, agen: AsyncGenerator[Any, Any]):
        self._agen = agen
        self._started = False
        self._finished = False
        self._current: Any = None

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def result(self) -> Any:
        if not self._finished:
            raise ProtocolError("The generator has not returned yet")
        return None

    async def _step(self, resume: Callable[[], Any]) -> Any:
        self._started = True
        try:
            self._current = await resume()
        except StopAsyncIteration:
            self._finished = True
            self._current = None
        except BaseException:
            self._finished = True
            self._current = None
            raise
        return self._current

    async def current(self) -> Any:
        if not self._started:
            return await self._step(self._agen.__anext__)
        return self._current

    async def send(self, value: Any) -> Any:
        await self.current()
        if self._finished:
            return None
        return await self._step(lambda: self._agen.asend(value))

    async def throw(self, error: BaseException) -> Any:
        await self.current()
        if self._finished:
            raise error
        return await self._step(lambda: self._agen.athrow(error))

    async def close(self) -> None:
        self._finished = True
        await self._agen.aclose()


_STEP_MEMBERS = ("finished", "result", "current", "send", "throw", "close")


def is_step_coroutine(obj: Any) -> bool:
    # getattr_static: a `result` property may raise until the producer finishes
    for member in _STEP_MEMBERS:
        try:
            inspect.getattr_static(obj, member)
        except AttributeError:
            return False
    return True


def as_steps(obj: Any) -> StepCoroutine:
    if inspect.isgenerator(obj):
        return GeneratorSteps(obj)
    if inspect.isasyncgen(obj):
        return AsyncGeneratorSteps(obj)
    if is_step_coroutine(obj):
        return obj
    raise TypeError(f"The callable did not return a generator (got {type(obj).__name__})")
