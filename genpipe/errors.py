from __future__ import annotations


class DisposedException(Exception):
    """Raised inside a producer whose consumer disposed of the pipeline.

    This is a control signal, not a failure: the driver uses it to unwind the
    coroutine and never reports it as the pipeline's outcome.
    """
    def __init__(self, msg: str = "The pipeline has been disposed"):
        super().__init__(msg)


class ProtocolError(RuntimeError):
    pass


class GeneratorCreationError(RuntimeError):
    pass


class Interrupted(Exception):
    def __init__(self, msg: str = "The generator task was cancelled"):
        super().__init__(msg)
