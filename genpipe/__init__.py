from .errors import DisposedException, ProtocolError, GeneratorCreationError, Interrupted
from .deferred import Deferred
from .channel import BackpressureChannel, ChannelState, END
from .steps import StepCoroutine, GeneratorSteps, AsyncGeneratorSteps, as_steps, is_step_coroutine
from .exit import Exit, Cause
from .runtime import Fiber, spawn
from .logger import ConsoleLogger
from .driver import GeneratorDriver
