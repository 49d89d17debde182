import pathlib
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Dict, Iterator

from twisted.logger import (
    FileLogObserver,
    LogEvent,
    LogLevel,
    formatEventAsClassicLogText,
    globalLogPublisher,
    jsonFileLogObserver,
    textFileLogObserver,
)
from twisted.logger import Logger as TwistedLogger
from twisted.python.logfile import LogFile

from litgate.config.constants import (
    DEFAULT_JSON_LOG_FILENAME,
    DEFAULT_LOG_FILENAME,
    USER_LOG_DIR,
)

Observer = Callable[[LogEvent], None]

ROTATE_LENGTH = 10 * 1_048_576  # bytes
MAX_ROTATED_FILES = 10


class LogOutput(Enum):
    CONSOLE = "console"
    TEXT = "text"
    JSON = "json"


def _rotating_log_file(name: str, path) -> LogFile:
    pathlib.Path(path).mkdir(parents=True, exist_ok=True)
    return LogFile(name=name, directory=path, rotateLength=ROTATE_LENGTH, maxRotatedFiles=MAX_ROTATED_FILES)


def get_text_file_observer(name: str = DEFAULT_LOG_FILENAME, path=USER_LOG_DIR) -> Observer:
    return FileLogObserver(formatEvent=formatEventAsClassicLogText, outFile=_rotating_log_file(name, path))


def get_json_file_observer(name: str = DEFAULT_JSON_LOG_FILENAME, path=USER_LOG_DIR) -> Observer:
    return jsonFileLogObserver(outFile=_rotating_log_file(name, path))


def get_console_observer() -> Observer:
    # stdout is reserved for command results (ciphertexts, delegations, plaintext)
    return textFileLogObserver(sys.stderr)


def observer_log_level_wrapper(observer: Observer) -> Observer:
    """Filters events below the process-wide level, which may change after the observer is registered."""
    def log_level_wrapper(event: LogEvent):
        if event["log_level"] >= GlobalLoggerSettings.log_level:
            observer(event)

    return log_level_wrapper


class GlobalLoggerSettings:
    """Process-wide log level and the set of active outputs."""

    log_level = LogLevel.levelWithName("info")
    _observers: Dict[LogOutput, Observer] = dict()

    @classmethod
    def set_log_level(cls, log_level_name: str) -> None:
        cls.log_level = LogLevel.levelWithName(log_level_name)

    @classmethod
    def _produce_observer(cls, output: LogOutput) -> Observer:
        # looked up at call time so that file locations can be patched
        factories = {
            LogOutput.CONSOLE: get_console_observer,
            LogOutput.TEXT: get_text_file_observer,
            LogOutput.JSON: get_json_file_observer,
        }
        return factories[output]()

    @classmethod
    def start(cls, output: LogOutput) -> None:
        if output in cls._observers:
            return
        observer = observer_log_level_wrapper(cls._produce_observer(output))
        globalLogPublisher.addObserver(observer)
        cls._observers[output] = observer

    @classmethod
    def stop(cls, output: LogOutput) -> None:
        observer = cls._observers.pop(output, None)
        if observer:
            globalLogPublisher.removeObserver(observer)

    @classmethod
    def stop_all(cls) -> None:
        for output in tuple(cls._observers):
            cls.stop(output)

    @classmethod
    def is_active(cls, output: LogOutput) -> bool:
        return output in cls._observers

    @classmethod
    def configure(cls, log_level: str, console: bool = False, text: bool = False, json: bool = False) -> None:
        """Applies one CLI invocation's logging choices, replacing whatever was active before."""
        cls.set_log_level(log_level_name=log_level)
        for output, enabled in ((LogOutput.CONSOLE, console), (LogOutput.TEXT, text), (LogOutput.JSON, json)):
            if enabled:
                cls.start(output)
            else:
                cls.stop(output)

    @classmethod
    @contextmanager
    def paused(cls) -> Iterator[None]:
        """Detaches every observer of the global publisher, including foreign ones, for the duration."""
        detached = tuple(globalLogPublisher._observers)
        for observer in detached:
            globalLogPublisher.removeObserver(observer)
        try:
            yield
        finally:
            for observer in detached:
                globalLogPublisher.addObserver(observer)


class Logger(TwistedLogger):
    """
    Twisted's Logger treats every message as a PEP-3101 format string. litgate logs signed
    SIWE messages, ReCap payloads and condition JSON, all full of curly braces, so messages
    are escaped before emitting. Events below the global log level are dropped here.
    """

    @staticmethod
    def escape_format_string(string: str) -> str:
        return string.replace("{", "{{").replace("}", "}}")

    def emit(self, level, format=None, **kwargs):
        if level >= GlobalLoggerSettings.log_level:
            super().emit(level=level, format=self.escape_format_string(str(format)), **kwargs)
