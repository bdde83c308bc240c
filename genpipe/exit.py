from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar
import traceback

A = TypeVar("A")


@dataclass(frozen=True)
class Cause:
    """Why a fiber did not succeed.

    ``kind`` is one of ``'fail'`` (the producer raised ``error``),
    ``'dispose'`` (the consumer disposed of the pipeline) or ``'interrupt'``
    (the task was cancelled).
    """
    kind: str
    error: Optional[BaseException] = None

    def render(self, indent: str = "", include_traces: bool = True) -> str:
        def line(s: str) -> str: return indent + s + "\n"
        if self.kind == 'fail':
            s = line(f"Fail({self.error!r})")
            if include_traces and self.error is not None and self.error.__traceback__:
                tb = ''.join(traceback.format_exception(type(self.error), self.error, self.error.__traceback__))
                s += ''.join(indent + '  ' + l for l in tb.splitlines(True))
            return s
        if self.kind == 'dispose': return line("Disposed")
        if self.kind == 'interrupt': return line("Interrupt")
        return line(f"Unknown({self.kind})")

    @staticmethod
    def fail(ex: BaseException) -> "Cause": return Cause(kind='fail', error=ex)
    @staticmethod
    def dispose() -> "Cause": return Cause(kind='dispose')
    @staticmethod
    def interrupt() -> "Cause": return Cause(kind='interrupt')


@dataclass
class Exit(Generic[A]):
    success: bool
    value: Optional[A] = None
    cause: Optional[Cause] = None
