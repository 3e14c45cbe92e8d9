"""Console logging for tree operations, with colors and the active node context appended to each message."""

import logging
import sys
from typing import TextIO

from databricks.labs.nodetree._logging_context import LoggingContextFilter

__all__ = ["NiceFormatter", "install_logger"]


class NiceFormatter(logging.Formatter):
    """Formats records as `time LEVEL [logger] message (context)`, in color unless told otherwise."""

    BOLD = "\033[1m"
    RESET = "\033[0m"
    GREEN = "\033[32m"
    CYAN = "\033[36m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    MAGENTA = "\033[35m"
    GRAY = "\033[90m"

    colors: bool
    """Whether this formatter is formatting with colors or not."""

    def __init__(self, *, probe_tty: bool = False, stream: TextIO = sys.stdout) -> None:
        """Create a new formatter.

        Args:
            stream: the stream the handler writes to, checked for being a console.
            probe_tty: if true, only use colors when the stream is a console.
        """
        super().__init__(fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s", datefmt="%H:%M:%S")
        self._levels = {
            logging.DEBUG: f"{self.BOLD}{self.CYAN}   DEBUG{self.RESET}",
            logging.INFO: f"{self.BOLD}{self.GREEN}    INFO{self.RESET}",
            logging.WARNING: f"{self.BOLD}{self.YELLOW} WARNING{self.RESET}",
            logging.ERROR: f"{self.BOLD}{self.RED}   ERROR{self.RESET}",
            logging.CRITICAL: f"{self.BOLD}{self.MAGENTA}CRITICAL{self.RESET}",
        }
        self.colors = stream.isatty() if probe_tty else True

    @staticmethod
    def _short_name(name: str) -> str:
        # databricks.labs.nodetree.tree -> d.l.nodetree.tree
        parts = name.split(".")
        return ".".join([*(p[:1] for p in parts[:-2]), *parts[-2:]])

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "context", "")
        if not self.colors:
            formatted = super().format(record)
            return f"{formatted} {context}" if context else formatted
        timestamp = self.formatTime(record, datefmt="%H:%M:%S")
        level = self._levels.get(record.levelno, record.levelname)
        msg = record.getMessage()
        if context:
            msg = f"{msg} {self.GRAY}{context}{self.RESET}"
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            msg = f"{msg}\n{record.exc_text}"
        thread_name = f"[{record.threadName}]" if record.threadName != "MainThread" else ""
        name = self._short_name(record.name)
        return f"{self.GRAY}{timestamp}{self.RESET} {level} [{name}]{thread_name} {msg}"


def install_logger(
    level: int | str = logging.DEBUG, *, stream: TextIO = sys.stderr, root: logging.Logger = logging.root
) -> logging.StreamHandler:
    """Replace the handlers of the root logger with a single console handler using :class:`NiceFormatter`.

    The logging level of the root logger itself is left as-is; the handler filters at `level`.

    Returns:
        The handler that was installed.
    """
    for handler in list(root.handlers):
        root.removeHandler(handler)
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(NiceFormatter(stream=stream))
    console_handler.addFilter(LoggingContextFilter())
    console_handler.setLevel(level)
    root.addHandler(console_handler)
    return console_handler
