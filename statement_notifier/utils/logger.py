"""Logging configuration and utilities for the statement notifier."""

import logging
import os
from typing import Optional

from statement_notifier.config.settings import LOG_LEVEL, LOG_FORMAT, LOGS_DIR


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: str = LOG_LEVEL,
    logs_dir: str = LOGS_DIR
) -> logging.Logger:
    """Set up a logger with console and file handlers.

    Args:
        name: Logger name.
        log_file: Optional log file name. If None, uses logger name.
        level: Logging level.
        logs_dir: Directory the log file is written to.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is None:
        log_file = f"{name}.log"

    log_path = os.path.join(logs_dir, log_file)
    os.makedirs(logs_dir, exist_ok=True)

    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


class ProcessingLogger:
    """Logger for a single statement check run."""

    def __init__(self, task_id: str, logs_dir: str = LOGS_DIR) -> None:
        """Initialize processing logger.

        Args:
            task_id: Unique identifier for the run.
            logs_dir: Directory the run log is written to.
        """
        self.task_id = task_id
        self.logger = setup_logger(f"statement_check.{task_id}", logs_dir=logs_dir)

    def log_start(self, account_id: str) -> None:
        self.logger.info(f"Started statement check {self.task_id} for account {account_id or '<unset>'}")

    def log_progress(self, message: str) -> None:
        self.logger.info(f"Task {self.task_id}: {message}")

    def log_error(self, error: Exception, context: str = "") -> None:
        """Log a run error with traceback.

        Args:
            error: Exception that occurred.
            context: Additional context information.
        """
        error_msg = f"Task {self.task_id}: Error in {context}: {str(error)}"
        self.logger.error(error_msg, exc_info=True)

    def log_completion(self, new_transactions: int) -> None:
        self.logger.info(
            f"Task {self.task_id}: Completed successfully. New transactions notified: {new_transactions}"
        )
