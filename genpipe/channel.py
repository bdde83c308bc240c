from __future__ import annotations
from enum import Enum, auto
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .deferred import Deferred
from .errors import DisposedException, ProtocolError

A = TypeVar("A"); S = TypeVar("S")


class _End:
    __slots__ = ()
    def __repr__(self) -> str: return "END"
    def __bool__(self) -> bool: return False


END: Any = _End()

_NOTHING = object()


class ChannelState(Enum):
    IDLE = auto()
    EMIT_PENDING = auto()
    CONTINUE_PENDING = auto()
    COMPLETED = auto()
    FAILED = auto()
    DISPOSED = auto()


class BackpressureChannel(Generic[A, S]):
    """Single-slot handoff between one producer and one consumer.

    The producer calls ``emit()`` and awaits the returned deferred, which
    resolves only once the consumer has pulled the item and acknowledged it
    with ``send()`` or ``throw()``. The producer therefore never runs more
    than one item ahead of the consumer.

    Example:
        ```python
        ch = BackpressureChannel[int, str]()

        # Producer
        reply = await ch.emit(1)

        # Consumer
        item = await ch.pull()   # 1
        ch.send("ack")           # producer resumes with "ack"
        ```

    Calls that break the one-outstanding-operation discipline raise
    ``ProtocolError`` and leave the channel untouched.
    """
    def __init__(self) -> None:
        self._item: Any = _NOTHING
        self._pull: Optional[Deferred[Any]] = None
        self._injection: Optional[Deferred[S]] = None
        self._delivered = False
        self._terminal: Optional[ChannelState] = None
        self._error: Optional[BaseException] = None
        self._on_disposal: List[Callable[[], None]] = []
        self._destroyed = False

    @property
    def state(self) -> ChannelState:
        if self._terminal is not None:
            return self._terminal
        if self._pull is not None and not self._pull.done():
            return ChannelState.CONTINUE_PENDING
        if self._injection is not None and not self._injection.done():
            return ChannelState.EMIT_PENDING
        return ChannelState.IDLE

    def is_complete(self) -> bool:
        return self._terminal in (ChannelState.COMPLETED, ChannelState.FAILED)

    def is_disposed(self) -> bool:
        return self._terminal is ChannelState.DISPOSED

    # producer side

    def emit(self, value: A) -> Deferred[S]:
        """Offer ``value`` to the consumer.

        Returns a deferred resolved with the value the consumer sends back,
        or failed with the error it throws. After disposal the deferred is
        already failed with ``DisposedException``.

        Raises:
            ProtocolError: if the previous emit is still unacknowledged, or
                the channel has already completed or failed
        """
        if self._terminal is ChannelState.DISPOSED:
            d: Deferred[S] = Deferred.failed(DisposedException())
            return d
        if self._terminal is not None:
            raise ProtocolError("Cannot emit after the pipeline has completed")
        if self._injection is not None and not self._injection.done():
            raise ProtocolError("Cannot emit before the previous emit has been acknowledged")
        injection: Deferred[S] = Deferred()
        self._injection = injection
        if self._pull is not None and not self._pull.done():
            pull, self._pull = self._pull, None
            self._delivered = True
            pull.succeed(value)
        else:
            self._item = value
            self._delivered = False
        return injection

    def complete(self) -> None:
        self._finish(ChannelState.COMPLETED, None)

    def fail(self, error: BaseException) -> None:
        self._finish(ChannelState.FAILED, error)

    def _finish(self, state: ChannelState, error: Optional[BaseException]) -> None:
        if self._terminal is ChannelState.DISPOSED:
            return
        if self._terminal is not None:
            raise ProtocolError("The pipeline has already completed")
        self._terminal = state
        self._error = error
        pull, self._pull = self._pull, None
        if pull is None:
            return
        if error is None:
            pull.try_succeed(END)
        else:
            pull.try_fail(error)

    # consumer side

    def pull(self) -> Deferred[Any]:
        """Request the next item.

        Returns a deferred resolved with the next emitted item, with ``END``
        once the channel completed or was disposed, or failed with the
        producer's error. An item already delivered but not yet acknowledged
        is acknowledged with ``None`` first.

        Raises:
            ProtocolError: if the previous pull has not resolved yet
        """
        if self._pull is not None and not self._pull.done():
            raise ProtocolError("The previous item has not yet been retrieved")
        if self._delivered and self._injection is not None and not self._injection.done():
            self._acknowledge(None, None)
        if self._item is not _NOTHING:
            item, self._item = self._item, _NOTHING
            self._delivered = True
            return Deferred.resolved(item)
        if self._terminal is ChannelState.FAILED:
            assert self._error is not None
            failed = Deferred.failed(self._error)
            failed.mark_retrieved()
            return failed
        if self._terminal is not None:
            return Deferred.resolved(END)
        self._pull = Deferred()
        return self._pull

    def send(self, value: S) -> None:
        self._acknowledge(value, None)

    def throw(self, error: Exception) -> None:
        """Acknowledge the delivered item by raising ``error`` in the producer.

        A ``StopIteration`` cannot travel through a future; it arrives as a
        ``RuntimeError`` chained to it, as PEP 479 does for generators.

        Raises:
            TypeError: if ``error`` is not an ``Exception``
            ProtocolError: if no delivered item awaits acknowledgement
        """
        if not isinstance(error, Exception):
            raise TypeError(f"Only Exception instances can be thrown into a generator (got {type(error).__name__})")
        if isinstance(error, StopIteration):
            wrapped = RuntimeError("StopIteration thrown into the generator")
            wrapped.__cause__ = error
            error = wrapped
        self._acknowledge(None, error)

    def _acknowledge(self, value: Any, error: Optional[BaseException]) -> None:
        if self._terminal is ChannelState.DISPOSED:
            return
        injection = self._injection
        if injection is None or injection.done() or not self._delivered:
            raise ProtocolError("No emitted item to acknowledge; retrieve one with pull() first")
        if error is None:
            injection.succeed(value)
        else:
            injection.fail(error)
        self._injection = None
        self._delivered = False

    def on_disposal(self, cb: Callable[[], None]) -> None:
        if self._terminal is ChannelState.DISPOSED:
            cb()
        else:
            self._on_disposal.append(cb)

    def dispose(self) -> None:
        """Stop the pipeline early on behalf of the consumer.

        A pending emit fails with ``DisposedException``, a pending pull
        resolves with ``END``. Does nothing once the channel has completed
        or failed.
        """
        if self._terminal is not None:
            return
        self._terminal = ChannelState.DISPOSED
        self._item = _NOTHING
        self._delivered = False
        injection, self._injection = self._injection, None
        if injection is not None and injection.try_fail(DisposedException()):
            injection.mark_retrieved()
        pull, self._pull = self._pull, None
        if pull is not None:
            pull.try_succeed(END)
        callbacks, self._on_disposal = self._on_disposal, []
        for cb in callbacks:
            cb()

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if self._terminal is None:
            self.dispose()
        self._on_disposal = []


