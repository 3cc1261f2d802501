#!/usr/bin/env python3

"""Progress tracking for the aggregate resolution loop."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter

import psutil


class ProgressTracker:
    """
    Track and report resolution progress with simple statistics.

    Provides contextual timing, per-pass tracking and aggregate counting for
    debugging the fixed-point resolution of a type catalog.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize progress tracker.

        Args:
            logger: Logger instance for progress reporting
        """
        self.logger = logger
        self.start_time = perf_counter()
        self.pass_count = 0
        self.resolved_count = 0
        self.failed_count = 0
        self.operation_stack: list[tuple[str, float]] = []

    @contextmanager
    def track_operation(self, operation_name: str) -> Iterator[None]:
        """
        Track a high-level operation with timing.

        Args:
            operation_name: Name of the operation being tracked

        Yields:
            None
        """
        start_time = perf_counter()
        self.operation_stack.append((operation_name, start_time))

        self.logger.debug(f"Starting operation: {operation_name}")

        try:
            yield
            elapsed = perf_counter() - start_time
            self.logger.debug(f"Completed operation: {operation_name} in {elapsed:.3f}s")
        except Exception as e:
            elapsed = perf_counter() - start_time
            self.logger.error(f"Failed operation: {operation_name} after {elapsed:.3f}s: {e}")
            raise
        finally:
            self.operation_stack.pop()

    @contextmanager
    def track_pass(self, pending: int, forced: bool) -> Iterator[None]:
        """
        Track one resolution pass over the pending aggregates.

        Args:
            pending: Number of aggregates still unresolved at pass start
            forced: Whether this pass resolves unconditionally

        Yields:
            None
        """
        self.pass_count += 1
        pass_start = perf_counter()
        resolved_before = self.resolved_count

        self.logger.debug(
            f"Resolution pass #{self.pass_count}: {pending} pending"
            f"{' (forced)' if forced else ''}"
        )

        yield

        elapsed = perf_counter() - pass_start
        self.logger.debug(
            f"Pass #{self.pass_count} resolved "
            f"{self.resolved_count - resolved_before} aggregate(s) in {elapsed * 1000:.2f}ms"
        )

    def count_resolved(self) -> None:
        """Increment resolved aggregate counter."""
        self.resolved_count += 1

    def count_failed(self) -> None:
        """Increment failed aggregate counter."""
        self.failed_count += 1

    def report_summary(self) -> None:
        """Report final resolution statistics."""
        total_time = perf_counter() - self.start_time
        self.logger.debug(
            f"Resolution complete: {self.resolved_count} resolved, "
            f"{self.failed_count} failed in {self.pass_count} pass(es) "
            f"({total_time * 1000:.2f}ms)"
        )

    def log_memory_usage(self) -> None:
        """Log current resident memory of this process."""
        try:
            memory_mb = psutil.Process().memory_info().rss / 1024 / 1024
            self.logger.debug(f"Memory usage: {memory_mb:.1f} MB")
        except psutil.Error as e:
            self.logger.debug(f"Could not get memory usage: {e}")

    def reset(self) -> None:
        """Reset all counters and timers."""
        self.start_time = perf_counter()
        self.pass_count = 0
        self.resolved_count = 0
        self.failed_count = 0
        self.operation_stack.clear()
