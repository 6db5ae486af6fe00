"""
Error handling and logging utilities for the CHIP-8 emulator.

This module configures the emulator's loggers and keeps a bounded history
of reported errors, so a host can inspect machine faults after the fact
and react to them per category.
"""

import logging
import sys
import os
import traceback
import json
import datetime
from typing import Dict, List, Any, Optional, Callable
from enum import Enum, auto
import threading

from ..common.exceptions import (
    MachineFault, ProgramLoadError, InvalidKeyError, ConfigurationError
)

# Configure base logger
logger = logging.getLogger("Chip8Emulator")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class ErrorLevel(Enum):
    """Error severity levels."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()

class ErrorCategory(Enum):
    """Categories of errors."""
    MACHINE = auto()
    PROGRAM = auto()
    INPUT = auto()
    CONFIGURATION = auto()
    SYSTEM = auto()
    UNKNOWN = auto()

def categorize(exception: Exception) -> ErrorCategory:
    """Map an exception to its error category."""
    if isinstance(exception, MachineFault):
        return ErrorCategory.MACHINE
    if isinstance(exception, ProgramLoadError):
        return ErrorCategory.PROGRAM
    if isinstance(exception, InvalidKeyError):
        return ErrorCategory.INPUT
    if isinstance(exception, ConfigurationError):
        return ErrorCategory.CONFIGURATION
    if isinstance(exception, OSError):
        return ErrorCategory.SYSTEM
    return ErrorCategory.UNKNOWN

class ErrorHandler:
    """
    Centralized error handling and logging for the CHIP-8 emulator.

    Reported errors are logged, kept in a bounded history and passed to
    any handler registered for their category. The handler never swallows
    exceptions itself: callers report and then re-raise or recover.
    """

    def __init__(self,
                log_file: Optional[str] = None,
                console_level: int = logging.INFO,
                file_level: int = logging.DEBUG,
                report_errors: bool = True,
                max_error_history: int = 100,
                configure_logging: bool = True):
        """
        Initialize the error handler.

        Args:
            log_file: Path to log file (None for no file logging)
            console_level: Logging level for console output
            file_level: Logging level for file output
            report_errors: Whether to collect error reports
            max_error_history: Maximum number of errors to keep in history
            configure_logging: Whether to install console/file handlers
        """
        self.log_file = log_file
        self.console_level = console_level
        self.file_level = file_level
        self.report_errors = report_errors
        self.max_error_history = max_error_history

        # Error history
        self.error_history = []
        self.error_history_lock = threading.Lock()

        # Error handlers by category
        self.error_handlers = {}

        if configure_logging:
            self._configure_logging()

        logger.debug("Error handler initialized")

    def _configure_logging(self) -> None:
        """Configure logging system."""
        # Reset handlers
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        logger.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        if self.log_file:
            self._add_file_handler(self.log_file)

    def _add_file_handler(self, log_file: str) -> None:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(self.file_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    def handle_error(self,
                  exception: Optional[Exception] = None,
                  message: Optional[str] = None,
                  level: ErrorLevel = ErrorLevel.ERROR,
                  category: Optional[ErrorCategory] = None,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Handle an error.

        Args:
            exception: Exception object
            message: Error message
            level: Error severity level
            category: Error category (derived from the exception if None)
            context: Additional context

        Returns:
            Error information dictionary
        """
        if category is None:
            category = categorize(exception) if exception else ErrorCategory.UNKNOWN

        if message is None:
            message = str(exception) if exception else "Unknown error"

        error_info = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": level.name,
            "category": category.name,
            "message": message,
            "exception_type": exception.__class__.__name__ if exception else None,
            "exception_args": [str(arg) for arg in exception.args] if exception else None,
            "traceback": "".join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )) if exception else None,
            "context": context or {},
        }

        log_level = getattr(logging, level.name)
        logger.log(log_level, f"{message} ({category.name})")
        if exception and error_info["traceback"]:
            logger.debug(f"Traceback: {error_info['traceback']}")

        if self.report_errors:
            with self.error_history_lock:
                self.error_history.append(error_info)

                if len(self.error_history) > self.max_error_history:
                    self.error_history = self.error_history[-self.max_error_history:]

        handler = self.error_handlers.get(category)
        if handler:
            handler(error_info)

        return error_info

    def register_handler(self, category: ErrorCategory, handler: Callable[[Dict[str, Any]], None]) -> None:
        """
        Register a handler for a specific error category.

        Args:
            category: Error category
            handler: Handler function, called with the error information
        """
        self.error_handlers[category] = handler
        logger.debug(f"Registered handler for {category.name} errors")

    def unregister_handler(self, category: ErrorCategory) -> bool:
        """
        Unregister a handler for a specific error category.

        Returns:
            True if handler was removed, False if not found
        """
        if category in self.error_handlers:
            del self.error_handlers[category]
            logger.debug(f"Unregistered handler for {category.name} errors")
            return True
        return False

    def clear_error_history(self) -> None:
        """Clear the error history."""
        with self.error_history_lock:
            self.error_history = []
        logger.debug("Cleared error history")

    def get_error_history(self,
                         level: Optional[ErrorLevel] = None,
                         category: Optional[ErrorCategory] = None,
                         max_errors: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get error history, optionally filtered.

        Args:
            level: Filter by error level
            category: Filter by error category
            max_errors: Maximum number of errors to return (most recent)

        Returns:
            List of error dictionaries
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        if level:
            errors = [e for e in errors if e["level"] == level.name]

        if category:
            errors = [e for e in errors if e["category"] == category.name]

        if max_errors and max_errors < len(errors):
            errors = errors[-max_errors:]

        return errors

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of errors by category, level and exception type.

        Returns:
            Dictionary with error summary
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        categories = {}
        levels = {}
        exceptions = {}
        for e in errors:
            categories[e["category"]] = categories.get(e["category"], 0) + 1
            levels[e["level"]] = levels.get(e["level"], 0) + 1
            exception_type = e.get("exception_type")
            if exception_type:
                exceptions[exception_type] = exceptions.get(exception_type, 0) + 1

        return {
            "total": len(errors),
            "by_category": categories,
            "by_level": levels,
            "by_exception": exceptions,
            "latest": errors[-1] if errors else None
        }

    def export_error_report(self, filename: str) -> None:
        """
        Export error history to a JSON file.

        Args:
            filename: Output filename
        """
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with self.error_history_lock:
            errors = self.error_history.copy()

        report = {
            "timestamp": datetime.datetime.now().isoformat(),
            "summary": self.get_error_summary(),
            "errors": errors
        }

        with open(filename, 'w') as f:
            json.dump(report, f, indent=2)

        logger.info(f"Exported error report to {filename}")

    def set_log_levels(self, console_level: int, file_level: Optional[int] = None) -> None:
        """
        Set logging levels.

        Args:
            console_level: Logging level for console output
            file_level: Logging level for file output (None to keep current)
        """
        self.console_level = console_level
        if file_level is not None:
            self.file_level = file_level

        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler):
                if file_level is not None:
                    handler.setLevel(file_level)
            elif isinstance(handler, logging.StreamHandler):
                handler.setLevel(console_level)

        logger.debug(f"Updated log levels: console={console_level}, file={file_level}")

    def set_log_file(self, log_file: Optional[str]) -> None:
        """
        Set log file.

        Args:
            log_file: Path to log file (None to disable file logging)
        """
        for handler in list(logger.handlers):
            if isinstance(handler, logging.FileHandler):
                logger.removeHandler(handler)
                handler.close()

        self.log_file = log_file
        if log_file:
            self._add_file_handler(log_file)
            logger.debug(f"Set log file to {log_file}")
        else:
            logger.debug("Disabled file logging")

    def log_exception(self, exception: Exception,
                    message: Optional[str] = None,
                    category: Optional[ErrorCategory] = None,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Report an exception at ERROR level."""
        return self.handle_error(
            exception=exception,
            message=message,
            level=ErrorLevel.ERROR,
            category=category,
            context=context
        )

    def log_warning(self, message: str,
                  category: ErrorCategory = ErrorCategory.UNKNOWN,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Report a warning message."""
        return self.handle_error(
            message=message,
            level=ErrorLevel.WARNING,
            category=category,
            context=context
        )
