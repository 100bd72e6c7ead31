"""Utility functions for the provisioning tool."""
import os
import shutil
import sys
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar('T')

_VERBOSE = False


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def is_root() -> bool:
    """Check if the script is running as root."""
    return os.geteuid() == 0


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"[INFO] {message}")


def log_action(message: str) -> None:
    """Log an action being performed."""
    print(f"  -> {message}")


def log_warning(message: str) -> None:
    """Log a warning to stderr."""
    print(f"[WARN] {message}", file=sys.stderr)


def log_debug(message: str) -> None:
    """Log a message only in verbose mode."""
    if _VERBOSE:
        print(f"[DEBUG] {message}")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    global _VERBOSE
    _VERBOSE = verbose


def retry(
    func: Callable[[], T],
    attempts: int,
    delay: float,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> Optional[T]:
    """Call func up to `attempts` times, sleeping `delay` seconds between failures.

    Returns the first successful result, or None once every attempt has raised
    one of `retry_on`. Any other exception propagates immediately.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as e:
            if attempt < attempts:
                log_action(f"Attempt {attempt} failed ({e}). Retrying in {delay} seconds...")
                time.sleep(delay)
            else:
                log_action(f"Attempt {attempt} failed ({e}).")
    return None
