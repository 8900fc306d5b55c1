"""
Grant Ledger Logging

Every module logs through ``get_logger(__name__)``. The first call installs
the ledger's handlers on the root logger:

    console  rich ``RichHandler`` with ledger highlighting
             (plain stdout stream when LOG_CONSOLE_HIGHLIGHTING is off)
    file     rotating ``logs/grantledger.log`` when LOG_FILE_OUTPUT is on

``configure_logging()`` swaps them for new settings, e.g. from the
``[logging]`` section of grantledger.toml. Handlers installed by anyone
else (test harnesses, host applications) are left in place.
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.text import Text
from rich.theme import Theme

from .constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FILE_OUTPUT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
)

LOG_FILE_PATH = Path(__file__).parent.parent / "logs" / "grantledger.log"

LEDGER_THEME = Theme(
    {
        "grantledger.address":         "cyan",
        "grantledger.error_code":      "bold red",
        "grantledger.level_debug":     "bold dim",
        "grantledger.level_info":      "bold green",
        "grantledger.level_warning":   "bold yellow",
        "grantledger.level_error":     "bold red",
        "grantledger.proposal_id":     "bold white",
        "grantledger.status_approved": "bold green",
        "grantledger.status_open":     "bold yellow",
        "grantledger.status_rejected": "bold red",
        "grantledger.timestamp":       "bold cyan",
    }
)


# ══════════════════════════════════════════════════════════════════════
#  FORMATTING
# ══════════════════════════════════════════════════════════════════════

class LedgerLogFormatter(logging.Formatter):
    """
    UTC timestamps, and no terminal control sequences in the output.

    Titles, descriptions and addresses are caller-supplied and end up in
    log messages, so ANSI escapes and control characters other than tab
    and newline are dropped from every formatted record.
    """

    converter = time.gmtime

    _UNSAFE = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"      # CSI sequences (colours, cursor moves)
        r"|\x1b[@-Z\\-_]"               # two-byte escapes
        r"|[\x00-\x08\x0b-\x1f\x7f]"    # C0 controls except \t and \n
    )

    @classmethod
    def sanitize(cls, text: str) -> str:
        return cls._UNSAFE.sub("", text) if text else text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


def build_formatter() -> LedgerLogFormatter:
    """Formatter from the .env settings; a LOG_FORMAT that logging rejects falls back to the default."""
    try:
        return LedgerLogFormatter(fmt=str(LOG_FORMAT), datefmt=f"{LOG_DATE_FORMAT} UTC")
    except ValueError:
        return LedgerLogFormatter(
            fmt=LOG_FORMAT.default(), datefmt=f"{LOG_DATE_FORMAT.default()} UTC"
        )


class LedgerLogHighlighter(RegexHighlighter):
    """
    Colours proposal ids, statuses, error codes and principals.

    Quoted text (proposal titles) stays plain so a title cannot pass itself
    off as a status or an error code.
    """

    base_style = "grantledger."
    highlights = [
        r"(?P<timestamp>^.*?UTC)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<level_error>\b(?:ERROR|CRITICAL)\b)",
        r"(?P<address>\b(?:SP|ST|SM|SN)[0-9A-Z]{3,}(?:\.[\w-]+)?\b)",
        r"(?P<error_code>\b[A-Z]+(?:_[A-Z]+)+\b(?=\s*\(\d{3}\)))",
        r"(?P<proposal_id>#\d+)",
        r"(?P<status_approved>\bapproved\b)",
        r"(?P<status_open>\b(?:pending|active)\b)",
        r"(?P<status_rejected>\brejected\b)",
    ]

    _QUOTED = re.compile(r"'[^']*'")

    def highlight(self, text: Text) -> None:
        super().highlight(text)
        quoted = [m.span() for m in self._QUOTED.finditer(text.plain)]
        if quoted:
            text.spans = [
                span for span in text.spans
                if not any(span.start < end and span.end > start for start, end in quoted)
            ]


# ══════════════════════════════════════════════════════════════════════
#  HANDLER MANAGEMENT
# ══════════════════════════════════════════════════════════════════════

class LogManager:
    """Installs and replaces the ledger's handlers on the root logger."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: List[logging.Handler] = []
        self.level: Optional[int] = None

    @property
    def is_configured(self) -> bool:
        return self.level is not None

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._handlers)

    def configure(
        self,
        level: Optional[str] = None,
        file_output: Optional[bool] = None,
        log_file: Optional[Path] = None,
    ) -> None:
        """
        Replace the ledger's handlers.

        Args:
            level:        Level name; LOG_LEVEL from .env when omitted,
                          INFO when unknown.
            file_output:  Also write to a rotating file; LOG_FILE_OUTPUT
                          from .env when omitted.
            log_file:     File path, ``logs/grantledger.log`` by default.
        """
        numeric = logging.getLevelName(str(level or LOG_LEVEL).upper())
        if not isinstance(numeric, int):
            numeric = logging.INFO
        if file_output is None:
            file_output = bool(LOG_FILE_OUTPUT)

        formatter = build_formatter()
        handlers = [_console_handler()]
        if file_output:
            handlers.append(_file_handler(log_file or LOG_FILE_PATH))
        for handler in handlers:
            handler.setFormatter(formatter)

        root = logging.getLogger()
        with self._lock:
            for old in self._handlers:
                root.removeHandler(old)
                old.close()
            for handler in handlers:
                root.addHandler(handler)
            root.setLevel(numeric)
            self._handlers = handlers
            self.level = numeric


def _console_handler() -> logging.Handler:
    if not LOG_CONSOLE_HIGHLIGHTING:
        return logging.StreamHandler(sys.stdout)
    return RichHandler(
        console=Console(theme=LEDGER_THEME, highlight=False),
        highlighter=LedgerLogHighlighter(),
        keywords=[],
        markup=False,
        rich_tracebacks=True,
        show_level=False,
        show_path=False,
        show_time=False,
    )


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=str(path),
        maxBytes=LOG_MAX_FILE_SIZE,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


_manager = LogManager()


def configure_logging(
    level: Optional[str] = None,
    file_output: Optional[bool] = None,
    log_file: Optional[Path] = None,
) -> None:
    _manager.configure(level=level, file_output=file_output, log_file=log_file)


def get_logger(name: str) -> logging.Logger:
    """Logger for *name*; installs the default handlers on first use."""
    if not _manager.is_configured:
        _manager.configure()
    return logging.getLogger(name)
