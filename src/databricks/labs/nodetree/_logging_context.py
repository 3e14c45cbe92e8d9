"""Plumbing that carries the node path (and other operation arguments) along with log records and exceptions."""

import dataclasses
import inspect
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from functools import partial, wraps
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any, TypeVar, get_origin

AnyType = TypeVar("AnyType")

if TYPE_CHECKING:
    SkipLogging = Annotated[AnyType, ...]  # SkipLogging[NodeStore] is just NodeStore to type checkers
else:

    @dataclasses.dataclass(slots=True)
    class SkipLogging:
        """Parameters annotated with this marker stay out of the logging context."""

        def __class_getitem__(cls, item: Any) -> Any:
            return Annotated[item, SkipLogging()]


_CTX: ContextVar = ContextVar("nodetree_ctx", default=MappingProxyType({}))


def _params_str(d) -> str:
    return ", ".join(f"{k}={v!r}" for k, v in d.items())


def _skipped_param_names(sig: inspect.Signature):
    for name, param in sig.parameters.items():
        annotation = param.annotation
        if get_origin(annotation) is not Annotated:
            continue
        if any(isinstance(m, SkipLogging) for m in annotation.__metadata__):
            yield name


def current_context():
    """Return the read-only mapping of the active logging context, i.e. {'path': '/a/b', 'delete_self': True}."""
    return _CTX.get()


def current_context_repr() -> str:
    """Return the active context as "key1=val1, key2=val2", or "" when there is none."""
    return _params_str(current_context())


@contextmanager
def logging_context(**kwds):
    """Add keywords to the logging context for the duration of the block. Thread and async safe.

    An exception leaving the block gets a "Context: ..." note, unless an inner block has already added one.
    """
    token = _CTX.set(MappingProxyType({**_CTX.get(), **kwds}))
    try:
        yield _CTX.get()
    except Exception as e:
        # notes only exist on python 3.11+
        if hasattr(e, "add_note") and not getattr(e, "__notes__", None):
            e.add_note(f"Context: {current_context_repr()}")
        raise
    finally:
        _CTX.reset(token)


def logging_context_params(func=None, **extra_context):
    """Decorator that runs the function inside a logging context made of its arguments.

    Extra keywords given to the decorator are added too, with lower precedence than the arguments. Parameters
    annotated with `SkipLogging` are left out.
    """
    if func is None:
        return partial(logging_context_params, **extra_context)

    sig = inspect.signature(func)
    skipped = set(_skipped_param_names(sig))

    @wraps(func)
    def wrapper(*args, **kwds):
        arguments = sig.bind(*args, **kwds).arguments if args else kwds
        ctx = {**extra_context, **{k: v for k, v in arguments.items() if k not in skipped}}
        with logging_context(**ctx):
            return func(*args, **kwds)

    return wrapper


class LoggingContextFilter(logging.Filter):
    """Adds the active logging context to each record as `record.context`."""

    def filter(self, record):
        ctx = current_context()
        record.context = f"({_params_str(ctx)})" if ctx else ""
        return True
