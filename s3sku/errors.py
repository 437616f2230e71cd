from __future__ import annotations
import logging
import functools
from typing import Type, Callable, Any

class S3SkuError(Exception): pass
class ConfigurationError(S3SkuError): pass
class EmptyInputError(S3SkuError): pass
class TooManyItemsError(S3SkuError): pass
class TaskError(S3SkuError): pass
class CopyToolError(TaskError): pass
class CopyTimeoutError(CopyToolError): pass

def setup_logging(level: int = logging.INFO, logfile: str | None = None) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):  # avoid duplicate handlers
        root.removeHandler(h)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    stream = logging.StreamHandler()
    stream.setFormatter(fmt)
    root.addHandler(stream)
    if logfile:
        fh = logging.FileHandler(logfile)
        fh.setFormatter(fmt)
        root.addHandler(fh)

def log_and_reraise(exception_cls: Type[Exception] = TaskError):
    def deco(func: Callable[..., Any]):
        @functools.wraps(func)
        def wrapper(*a, **kw):
            try:
                return func(*a, **kw)
            except exception_cls:
                raise
            except Exception as e:
                logging.getLogger(func.__module__).debug("%s failed: %s", func.__name__, e)
                raise exception_cls(f"{func.__name__} failed: {e}") from e
        return wrapper
    return deco
