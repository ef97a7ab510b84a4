"""
Method entry/exit logging for callables in the application namespace.

A CallInterceptor wraps in-scope callables so that every invocation emits a
BEFORE event ahead of the call and, only when the call returns normally, an
AFTER_SUCCESS event carrying the returned value. Exceptions pass through
untouched and produce no second event.
"""
import sys
import logging
import functools
import threading
from enum import Enum
from fnmatch import fnmatchcase
from typing import Any, Callable, Iterable, NamedTuple, Optional, TextIO, Union

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "hello_service.*"

# Marker set on wrappers so they are never wrapped twice
_WRAPPED_ATTR = "__intercepted__"


class Phase(Enum):
    BEFORE = "before"
    AFTER_SUCCESS = "after_success"


class InvocationEvent(NamedTuple):
    """One side-channel event for a single intercepted call."""
    method: str
    phase: Phase
    result: Any = None

    def render(self) -> str:
        if self.phase is Phase.BEFORE:
            return f"Before method: {self.method}"
        return f"After method: {self.method}, Result: {self.result}"


class StreamSink:
    """
    Writes one rendered line per event to a text stream (stdout by default).

    The whole line goes out in a single write under a lock, so lines from
    concurrent invocations never interleave.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        # Resolved late so redirected stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def emit(self, event: InvocationEvent) -> None:
        line = event.render() + "\n"
        with self._lock:
            stream = self.stream
            stream.write(line)
            stream.flush()


class LoggingSink:
    """Sends rendered events through the logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger("hello_service.calls")
        self.level = level

    def emit(self, event: InvocationEvent) -> None:
        self.logger.log(self.level, event.render())


def qualified_name(func: Callable) -> str:
    module = getattr(func, "__module__", None) or ""
    qualname = getattr(func, "__qualname__", None) or getattr(func, "__name__", "")
    return f"{module}.{qualname}" if module else qualname


class CallInterceptor:
    """
    Wraps callables matching a scope selector and reports their invocations.

    Attributes:
        patterns (tuple): Glob patterns matched against "<module>.<qualname>".
        sink: Destination for InvocationEvents; anything with an emit(event) method.
    """

    def __init__(self, scope: Union[str, Iterable[str]] = DEFAULT_SCOPE, sink=None):
        if isinstance(scope, str):
            scope = (scope,)
        self.patterns = tuple(scope)
        if not self.patterns:
            raise ValueError("At least one scope pattern is required")
        self.sink = sink if sink is not None else StreamSink()

    def in_scope(self, func: Callable) -> bool:
        name = qualified_name(func)
        return any(fnmatchcase(name, pattern) for pattern in self.patterns)

    def wrap(self, func: Callable) -> Callable:
        """
        Return an intercepting wrapper for func, or func itself when it is out
        of scope or already intercepted.
        """
        if getattr(func, _WRAPPED_ATTR, False):
            return func
        if not self.in_scope(func):
            logger.debug(f"Not intercepting {qualified_name(func)}: outside scope {self.patterns}")
            return func

        method = getattr(func, "__name__", repr(func))
        sink = self.sink

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            sink.emit(InvocationEvent(method, Phase.BEFORE))
            result = func(*args, **kwargs)
            sink.emit(InvocationEvent(method, Phase.AFTER_SUCCESS, result))
            return result

        setattr(wrapper, _WRAPPED_ATTR, True)
        logger.debug(f"Intercepting {qualified_name(func)}")
        return wrapper

    __call__ = wrap

    def weave(self, instance):
        """
        Bind intercepting wrappers for every public, in-scope method of the
        instance's class onto the instance itself. The class is left untouched.

        Returns:
            The same instance, for chaining.
        """
        cls = type(instance)
        for name in dir(cls):
            if name.startswith("_"):
                continue
            attr = getattr(cls, name)
            if isinstance(attr, property) or not callable(attr):
                continue
            bound = getattr(instance, name)
            # Only plain methods defined on the class; skip staticmethods and nested classes
            if getattr(bound, "__self__", None) is not instance:
                continue
            wrapped = self.wrap(bound)
            if wrapped is not bound:
                setattr(instance, name, wrapped)
        return instance
