#!/usr/bin/env python3

"""Logger setup and configuration for the command line tool."""

import logging
import sys
from datetime import datetime
from pathlib import Path


class LoggerSetup:
    """Manages logging configuration for the application."""

    _initialized = False
    _log_file_path: Path | None = None

    @classmethod
    def initialize(cls, log_dir: Path | None, verbose: bool = False) -> None:
        """
        Initialize the logging system with console and optional file handlers.

        Console output goes to stderr so that JSON written to stdout stays
        machine readable.

        Args:
            log_dir: Directory to store log files, or None for console only
            verbose: If True, set console to DEBUG level; otherwise INFO
        """
        if cls._initialized:
            return

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root_logger.addHandler(console_handler)

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            cls._log_file_path = log_dir / f"cstruct_layout_{timestamp}.log"

            # File handler - always DEBUG level
            file_handler = logging.FileHandler(cls._log_file_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            file_handler.setFormatter(file_formatter)
            root_logger.addHandler(file_handler)

        cls._initialized = True

        logger = logging.getLogger(__name__)
        if cls._log_file_path is not None:
            logger.debug(f"Logging initialized. Log file: {cls._log_file_path}")
        logger.debug(f"Verbose mode: {verbose}")

    @classmethod
    def reset(cls) -> None:
        """Drop installed handlers so the next initialize() starts clean."""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            handler.close()
            root_logger.removeHandler(handler)
        cls._initialized = False
        cls._log_file_path = None

    @classmethod
    def get_log_file_path(cls) -> Path | None:
        """Get the current log file path."""
        return cls._log_file_path

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if logging has been initialized."""
        return cls._initialized
