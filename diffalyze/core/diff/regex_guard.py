"""
Validation of user supplied strip patterns.

Python's re engine cannot be interrupted from another thread, so the probe
match runs in a child process that is terminated when it exceeds its budget.
An unsafe pattern is reported as a warning and treated as "no pattern".
"""

from __future__ import annotations

import logging
import multiprocessing
import re
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


logger = logging.getLogger(__name__)

PROBE_INPUT = "a" * 1000
DEFAULT_TIMEOUT = 0.25        # seconds allowed for the probe once the child is ready
DEFAULT_PROBE_BUDGET = 0.05   # seconds a safe pattern may spend on the probe
STARTUP_TIMEOUT = 10.0        # seconds allowed for the child to start

# Probe children start a fresh interpreter, never a fork of a threaded parent
_CONTEXT = multiprocessing.get_context("spawn")


class PatternStatus(Enum):
    """Outcome of a pattern check."""
    EMPTY = auto()      # No pattern configured
    SAFE = auto()
    INVALID = auto()    # Does not compile
    TOO_SLOW = auto()   # Probe finished but exceeded the budget
    TIMEOUT = auto()    # Probe did not finish in time


@dataclass(frozen=True)
class PatternCheck:
    """Result of validating a strip pattern."""
    pattern: Optional[str]
    status: PatternStatus
    detail: str = ""
    elapsed: Optional[float] = None

    @property
    def is_safe(self) -> bool:
        return self.status is PatternStatus.SAFE

    @property
    def effective_pattern(self) -> Optional[str]:
        """Pattern to hand to the normalizer, None unless safe."""
        return self.pattern if self.is_safe else None

    @property
    def warning(self) -> Optional[str]:
        """Human readable warning for unsafe patterns."""
        if self.status in (PatternStatus.EMPTY, PatternStatus.SAFE):
            return None
        reasons = {
            PatternStatus.INVALID: "does not compile",
            PatternStatus.TOO_SLOW: "is too slow",
            PatternStatus.TIMEOUT: "timed out during validation",
        }
        message = f"Pattern {self.pattern!r} {reasons[self.status]} and was ignored"
        if self.detail:
            message += f" ({self.detail})"
        return message


def _probe(pattern: str, conn) -> None:
    """Child process entry: signal readiness, then time one probe search."""
    compiled = re.compile(pattern)
    conn.send(None)
    started = time.perf_counter()
    compiled.search(PROBE_INPUT)
    conn.send(time.perf_counter() - started)
    conn.close()


def check_pattern(
    pattern: Optional[str],
    timeout: float = DEFAULT_TIMEOUT,
    probe_budget: float = DEFAULT_PROBE_BUDGET
) -> PatternCheck:
    """
    Check that a pattern compiles and matches the probe input quickly.

    Args:
        pattern: Pattern to validate
        timeout: Wall clock seconds allowed for the probe search
        probe_budget: Probe time at or above which the pattern is rejected

    Returns:
        PatternCheck describing the outcome
    """
    if not pattern or not pattern.strip():
        return PatternCheck(pattern, PatternStatus.EMPTY)

    try:
        re.compile(pattern)
    except re.error as e:
        logger.warning("Rejected invalid pattern %r: %s", pattern, e)
        return PatternCheck(pattern, PatternStatus.INVALID, str(e))

    receiver, sender = _CONTEXT.Pipe(duplex=False)
    process = _CONTEXT.Process(
        target=_probe,
        args=(pattern, sender),
        name="regex-probe",
        daemon=True,
    )
    process.start()
    sender.close()

    try:
        if not receiver.poll(STARTUP_TIMEOUT):
            return _timed_out(pattern, "probe process did not start")
        receiver.recv()

        if not receiver.poll(timeout):
            return _timed_out(pattern, f"no result within {timeout * 1000:.0f} ms")
        elapsed = receiver.recv()
    except EOFError:
        return _timed_out(pattern, "probe process exited early")
    finally:
        if process.is_alive():
            process.terminate()
        process.join()
        receiver.close()

    if elapsed >= probe_budget:
        logger.warning("Rejected slow pattern %r (%.1f ms)", pattern, elapsed * 1000)
        return PatternCheck(
            pattern,
            PatternStatus.TOO_SLOW,
            f"{elapsed * 1000:.1f} ms on probe input",
            elapsed,
        )

    return PatternCheck(pattern, PatternStatus.SAFE, elapsed=elapsed)


def _timed_out(pattern: str, detail: str) -> PatternCheck:
    logger.warning("Rejected pattern %r: %s", pattern, detail)
    return PatternCheck(pattern, PatternStatus.TIMEOUT, detail)
