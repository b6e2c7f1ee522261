"""Colored router logger: ANSI-colored console tracing of query routing.

Each router stage gets its own color so a query's path (fast path vs.
classifier + AI) is easy to follow in the terminal:

    Green  : pattern fast path
    Blue   : classification
    Yellow : structured query execution
    Cyan   : context selection
    Magenta: AI analysis
    Red    : errors
    Gray   : details / timing
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


Stage = tuple[str, str, str]  # (label, color, icon)


class QueryStage:
    """Router stages with colors and icons."""

    RECEIVED = ("RECEIVED", _Colors.WHITE, "📨")
    PATTERN = ("PATTERN", _Colors.GREEN, "⚡")
    CLASSIFY = ("CLASSIFY", _Colors.BLUE, "🏷️")
    EXECUTE = ("EXECUTE", _Colors.YELLOW, "🗄️")
    CONTEXT = ("CONTEXT", _Colors.CYAN, "🧩")
    AI = ("AI", _Colors.MAGENTA, "🤖")
    MERGE = ("MERGE", _Colors.WHITE, "🔗")
    ERROR = ("ERROR", _Colors.RED, "❌")
    DONE = ("DONE", _Colors.GREEN, "✅")


def _kv(kwargs: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in kwargs.items())


class RouterLogger:
    """Color-coded logger for query routing.

    Usage:
        log = RouterLogger("QueryRouter")
        with log.timed_step(QueryStage.EXECUTE, "Running structured query"):
            result = await executor.execute(plan)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        line = f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} {color}{message}{_Colors.RESET}"
        if kwargs:
            line += f" {_Colors.GRAY}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.info(line)

    def step_complete(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        line = f"{color}{icon} [{label}]{_Colors.RESET} {_Colors.GREEN}✓ {message}{_Colors.RESET}"
        if kwargs:
            line += f" {_Colors.GRAY}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.info(line)

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        label = stage[0]
        line = f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} {_Colors.RED}{message}{_Colors.RESET}"
        if error is not None:
            line += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(line)

    def warning(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, _, icon = stage
        line = f"{_Colors.YELLOW}{icon} [{label}] ⚠ {message}{_Colors.RESET}"
        if kwargs:
            line += f" {_Colors.GRAY}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.warning(line)

    def detail(self, message: str, **kwargs: Any) -> None:
        line = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            line += f" {_Colors.DIM}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.info(line)

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **kwargs: Any):
        """Log start/end of a step with elapsed milliseconds."""
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except BaseException as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.step_error(stage, f"{message} failed after {elapsed_ms:.0f}ms", error=e)
            raise
        else:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.step_complete(stage, f"{message} ({elapsed_ms:.0f}ms)")
