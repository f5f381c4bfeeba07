"""
Centralized Logger with Rich Console
====================================
Every component logs through this wrapper.

Usage:
    from bundle_pipeline.shared.system.logging import Logger

    Logger.info("[RELAY] Bundle submitted")
    Logger.success("[STAGE] Deployment landed")
    Logger.warning("Something concerning")
    Logger.error("Something broke")
    Logger.section("Distribute")

File logging is off until `Logger.enable_file_logging()` is called or
BUNDLE_PIPELINE_LOG_DIR is set in the environment.
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.text import Text


file_logger = logging.getLogger("BundlePipeline")
file_logger.setLevel(logging.INFO)
file_logger.propagate = False

_file_handler: Optional[RotatingFileHandler] = None


# =============================================================================
# SOURCE ICONS (for visual scanning)
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "PIPELINE": "🧭",
    "PREPARER": "📦",
    "RELAY": "📡",
    "SIGNER": "🔐",
    "SPLIT": "✂️",
    "RETRY": "🔁",
    "POLL": "⏳",
    "STAGE": "🪜",
    "DISTRIBUTE": "💸",
    "MIX": "🌀",
    "CREATE": "🪙",
    "CONSOLIDATE": "🧲",
    "CLI": "⌨️",
}


# =============================================================================
# RICH CONSOLE
# =============================================================================

_console = Console(stderr=True)

LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green bold",
    "WARNING": "yellow",
    "ERROR": "red bold",
    "DEBUG": "dim",
    "CRITICAL": "red bold reverse",
    "SECTION": "magenta bold",
}


# =============================================================================
# LOGGER CLASS
# =============================================================================

class Logger:
    """
    Centralized logger with Rich console output.

    Features:
    - Color-coded console output with Rich
    - Optional file logging with rotation
    - Source-based icon prefixes parsed from a leading [TAG]
    """

    _silent_mode = os.getenv("BUNDLE_PIPELINE_SILENT", "").lower() in ("1", "true", "yes")

    @staticmethod
    def _timestamp() -> str:
        """High-precision timestamp (HH:MM:SS.ms)."""
        now = datetime.now()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d}"

    @staticmethod
    def _parse_source(message: str) -> tuple:
        """Extract [SOURCE] tag from message if present."""
        stripped = message.strip()
        if stripped.startswith("[") and "]" in stripped:
            tag_end = stripped.index("]")
            source = stripped[1:tag_end].upper()
            if 0 < len(source) < 15:
                return source, stripped[tag_end + 1:].strip()
        return "SYSTEM", message

    @staticmethod
    def _format_console(level: str, message: str, source: str) -> None:
        """Output to console."""
        if Logger._silent_mode:
            return

        icon = SOURCE_ICONS.get(source.upper(), "")
        msg_with_icon = f"{icon} {message}" if icon else message

        line = Text()
        line.append(f"{Logger._timestamp()} ", style="dim")
        line.append(f"| {level[:8].ljust(8)} ", style=LEVEL_STYLES.get(level, "white"))
        line.append(f"| {source[:11].ljust(11)} | ", style="dim")
        line.append(msg_with_icon)
        _console.print(line)

    @staticmethod
    def _log_to_file(level: str, message: str, source: str = "") -> None:
        """Write to file logger (no-op until file logging is enabled)."""
        if _file_handler is None:
            return
        full_msg = f"[{source}] {message}" if source else message
        if level == "INFO":
            file_logger.info(full_msg)
        elif level == "WARNING":
            file_logger.warning(full_msg)
        elif level == "ERROR":
            file_logger.error(full_msg)
        elif level == "DEBUG":
            file_logger.debug(full_msg)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def info(message: str, icon: str = "") -> None:
        source, msg = Logger._parse_source(message)
        if icon:
            msg = f"{icon} {msg}"
        Logger._format_console("INFO", msg, source)
        Logger._log_to_file("INFO", msg, source)

    @staticmethod
    def success(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("SUCCESS", msg, source)
        Logger._log_to_file("INFO", f"✅ {msg}", source)

    @staticmethod
    def warning(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("WARNING", msg, source)
        Logger._log_to_file("WARNING", msg, source)

    @staticmethod
    def error(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("ERROR", msg, source)
        Logger._log_to_file("ERROR", msg, source)

    @staticmethod
    def debug(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._log_to_file("DEBUG", msg, source)

    @staticmethod
    def critical(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("CRITICAL", f"🛑 {msg}", source)
        Logger._log_to_file("ERROR", f"🛑 {msg}", source)

    @staticmethod
    def section(title: str) -> None:
        """Print a section header."""
        if not Logger._silent_mode:
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        Logger._log_to_file("INFO", f"=== {title} ===", "SYSTEM")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output."""
        Logger._silent_mode = silent

    @staticmethod
    def enable_file_logging(log_dir: str, level: int = logging.INFO) -> str:
        """
        Attach a per-run rotating log file under `log_dir`.

        Returns:
            Path of the log file being written.
        """
        global _file_handler
        os.makedirs(log_dir, exist_ok=True)

        run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"bundle_pipeline_{run_id}.log")

        if _file_handler is not None:
            file_logger.removeHandler(_file_handler)
            _file_handler.close()

        _file_handler = RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        _file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        file_logger.addHandler(_file_handler)
        file_logger.setLevel(level)
        return log_file


if os.getenv("BUNDLE_PIPELINE_LOG_DIR"):
    Logger.enable_file_logging(os.environ["BUNDLE_PIPELINE_LOG_DIR"])
