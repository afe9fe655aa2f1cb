import sys
from dataclasses import dataclass
from typing import Callable

def _print_log(message: str) -> None:
    print(message)

def _print_warn(message: str) -> None:
    print(f"WARN  {message}", file=sys.stderr)

@dataclass(frozen=True)
class LogSystem:
    """The log/warn pair handed to an import by its host pipeline."""
    log: Callable[[str], None] = _print_log
    warn: Callable[[str], None] = _print_warn

def default_log_system() -> LogSystem:
    return LogSystem()

def quiet_log_system() -> LogSystem:
    """Drop progress lines but keep warnings."""
    return LogSystem(log=lambda message: None)
