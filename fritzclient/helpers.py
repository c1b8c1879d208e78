"""
Helpers!
"""

import abc
import asyncio
import logging
from time import time
import typing

if typing.TYPE_CHECKING:
    from typing import Any, Callable, Coroutine, Final, NotRequired, TypedDict, Unpack


def mired_to_kelvin(mired: float) -> int:
    return round(1000000 / mired)


def kelvin_to_mired(kelvin: float) -> int:
    return round(1000000 / kelvin)


def getLogger(name):
    """
    Replaces the default Logger with our wrapped implementation:
    replace your logging.getLogger with helpers.getLogger et voilà
    """
    logger = logging.getLogger(name)
    # watchout: getLogger could return an instance already
    # subclassed if we previously asked for the same name
    _class = logger.__class__
    if _class not in _Logger._CLASS_HOOKS.values():
        # getLogger returned a 'virgin' class
        if _class in _Logger._CLASS_HOOKS.keys():
            # we've alread subclassed this type, so we reuse it
            logger.__class__ = _Logger._CLASS_HOOKS[_class]
        else:
            logger.__class__ = _Logger._CLASS_HOOKS[_class] = type(
                "Logger",
                (
                    _Logger,
                    logger.__class__,
                ),
                {},
            )

    return logger


class _Logger(logging.Logger if typing.TYPE_CHECKING else object):
    """
    This wrapper will 'filter' log messages and avoid
    verbose over-logging for the same message by using a timeout
    to prevent repeating the very same log before the timeout expires.
    The implementation 'hacks' a standard Logger instance by mixin-ing
    """

    # for example: LOGGER.debug("No data type for %s", name, timeout=3600)
    # cache of logged messages with relative last-thrown-epoch
    _LOGGER_TIMEOUTS = {}
    # cache of subclassing types: see getLogger
    _CLASS_HOOKS = {}

    def _log(self, level, msg, args, **kwargs):
        if "timeout" in kwargs:
            timeout = kwargs.pop("timeout")
            epoch = time()
            trap_key = (msg, args)
            if trap_key in _Logger._LOGGER_TIMEOUTS:
                if (epoch - _Logger._LOGGER_TIMEOUTS[trap_key]) < timeout:
                    return
            _Logger._LOGGER_TIMEOUTS[trap_key] = epoch

        super()._log(level, msg, args, **kwargs)


LOGGER = getLogger(__name__[:-8])  # get base package name for logging
"""Root fritzclient logger"""


class Loggable(abc.ABC):
    """
    Helper base class for logging instance name/id related info.
    Derived classes can customize this by overriding 'configure_logger'
    to provide a custom logtag.
    """

    if typing.TYPE_CHECKING:
        id: Final[Any]
        logger: "logging.Logger"

        class Args(TypedDict):
            logger: NotRequired["logging.Logger"]

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    CRITICAL = logging.CRITICAL

    __slots__ = ("id", "logtag", "logger")

    def __init__(self, id, **kwargs: "Unpack[Args]"):
        self.id = id
        self.logger = kwargs.get("logger") or LOGGER
        self.configure_logger()

    def __repr__(self):
        return f"{self.__class__.__name__}({self.id})"

    def configure_logger(self):
        self.logtag = f"{self.__class__.__name__}({self.id})"

    def isEnabledFor(self, level: int):
        return self.logger.isEnabledFor(level)

    def log(self, level: int, msg: str, *args, **kwargs):
        self.logger.log(level, f"{self.logtag}: {msg}", *args, **kwargs)

    def log_exception(
        self, level: int, exception: Exception, msg: str, *args, **kwargs
    ):
        self.log(
            level,
            f"{exception.__class__.__name__}({str(exception)}) in {msg}",
            *args,
            **kwargs,
        )


class Debouncer:
    """
    Coalesces rapid successive writes (i.e. a dragged slider) so that
    only the last requested value is sent once the input quiesces.
    Each call to 'schedule' cancels the pending fire and reschedules it
    'delay' seconds later.
    """

    __slots__ = (
        "delay",
        "value",
        "_target",
        "_unsub",
        "_task",
    )

    def __init__(
        self,
        target: "Callable[[Any], Coroutine]",
        delay: float = 0.25,
    ):
        self.delay = delay
        self.value = None
        self._target = target
        self._unsub: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._unsub is not None

    def schedule(self, value):
        self.value = value
        if self._unsub:
            self._unsub.cancel()
        self._unsub = asyncio.get_running_loop().call_later(self.delay, self._fire)

    def cancel(self):
        if self._unsub:
            self._unsub.cancel()
            self._unsub = None

    async def async_flush(self):
        """Fires the pending value (if any) right now and waits for completion"""
        if self._unsub:
            self._unsub.cancel()
            self._unsub = None
            await self._target(self.value)
        elif self._task:
            await self._task

    def _fire(self):
        self._unsub = None
        self._task = asyncio.get_running_loop().create_task(self._async_fire())

    async def _async_fire(self):
        try:
            await self._target(self.value)
        except Exception as exception:
            LOGGER.warning(
                "Debouncer: %s(%s) while sending %s",
                exception.__class__.__name__,
                str(exception),
                self.value,
            )
        finally:
            self._task = None
