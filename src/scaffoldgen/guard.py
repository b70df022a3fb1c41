# -*- coding: ascii -*-
"""Per-molecule failure accounting for batch decomposition."""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple

from .chem_compat import SANITIZE_ERRORS
from .exceptions import (
    RingNotFoundError, RingNotRemovableError, NodeNotFoundError, SettingsError,
)

LOG = logging.getLogger(__name__)

# Programming errors: never counted, always raised
CONTRACT_ERRORS = (RingNotFoundError, RingNotRemovableError, NodeNotFoundError, SettingsError)


def strict_mode_enabled() -> bool:
    return os.environ.get('SCAFFOLDGEN_STRICT', '0') == '1'


class BatchStats:
    """Counters for one batch of molecules."""

    def __init__(self):
        self.processed = 0
        self.invalid = 0
        self.no_scaffold = 0
        self.failed = 0
        self.failures: List[Tuple[str, str]] = []

    def record_invalid(self, name: str, reason: str) -> None:
        self.invalid += 1
        self.failures.append((name, reason))
        LOG.warning(f"Skipping invalid molecule '{name}': {reason}")

    def record_failure(self, name: str, reason: str) -> None:
        self.failed += 1
        self.failures.append((name, reason))
        LOG.warning(f"Decomposition failed for '{name}': {reason}")

    def record_no_scaffold(self, name: str) -> None:
        self.no_scaffold += 1
        LOG.debug(f"No ring scaffold in '{name}'")

    @property
    def skipped(self) -> int:
        return self.invalid + self.failed

    def merge(self, other: 'BatchStats') -> None:
        self.processed += other.processed
        self.invalid += other.invalid
        self.no_scaffold += other.no_scaffold
        self.failed += other.failed
        self.failures.extend(other.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'processed': self.processed,
            'invalid': self.invalid,
            'no_scaffold': self.no_scaffold,
            'failed': self.failed,
            'failures': list(self.failures),
        }

    def log_summary(self) -> None:
        LOG.info(f"Batch summary - processed: {self.processed}, invalid: {self.invalid}, "
                 f"no scaffold: {self.no_scaffold}, failed: {self.failed}")


@contextmanager
def molecule_guard(stats: BatchStats, name: str):
    """
    Count an RDKit failure for one molecule instead of aborting the batch.

    Contract errors propagate. With SCAFFOLDGEN_STRICT=1 RDKit failures
    propagate too.
    """
    try:
        yield
    except CONTRACT_ERRORS:
        raise
    except SANITIZE_ERRORS as e:
        if strict_mode_enabled():
            raise
        stats.record_failure(name, f"{type(e).__name__}: {e}")
