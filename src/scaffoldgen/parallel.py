# -*- coding: ascii -*-
"""Multi-process per-molecule decomposition.

Decomposition of one molecule is pure, so molecules are farmed out to a
process pool. Results come back in input order and are merged by a single
writer in builder.py.
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Iterator, List, Optional, Tuple

from rdkit import Chem

from .chem_compat import SANITIZE_ERRORS
from .config import ScaffoldSettings
from .decompose import decompose_canonical, decompose_enumerative
from .guard import BatchStats, CONTRACT_ERRORS, molecule_guard, strict_mode_enabled
from .standardize import LoadResult

LOG = logging.getLogger(__name__)

CANONICAL = 'canonical'
ENUMERATIVE = 'enumerative'

_DECOMPOSERS = {
    CANONICAL: decompose_canonical,
    ENUMERATIVE: decompose_enumerative,
}


def _decompose_single(mol: Chem.Mol, name: str, settings: ScaffoldSettings,
                      mode: str) -> Tuple[str, Any]:
    """
    Decompose one molecule in a worker process.

    Returns ('ok', path_or_dag) or ('error', reason); contract errors are
    raised and surface through the future.
    """
    try:
        return 'ok', _DECOMPOSERS[mode](mol, settings, name)
    except CONTRACT_ERRORS:
        raise
    except SANITIZE_ERRORS as e:
        return 'error', f"{type(e).__name__}: {e}"


def decompose_batch(items: List[LoadResult], settings: ScaffoldSettings,
                    mode: str = CANONICAL, workers: Optional[int] = 1,
                    stats: Optional[BatchStats] = None) -> Iterator[Tuple[LoadResult, Any]]:
    """
    Decompose loaded molecules, skipping failures.

    Args:
        items: Successfully loaded molecules
        settings: Decomposition settings
        mode: 'canonical' (paths) or 'enumerative' (DAGs)
        workers: Worker processes; None means CPU count, <= 1 runs in-process
        stats: Optional BatchStats receiving processed/failed counts

    Yields:
        (item, DecompositionPath or DecompositionDAG) in input order
    """
    if mode not in _DECOMPOSERS:
        raise ValueError(f"Unknown decomposition mode: {mode}")
    stats = stats if stats is not None else BatchStats()

    if workers is None:
        workers = min(len(items), os.cpu_count() or 4)

    if workers <= 1 or len(items) <= 1:
        decompose = _DECOMPOSERS[mode]
        for item in items:
            result = None
            with molecule_guard(stats, item.name):
                result = decompose(item.mol, settings, item.name)
            stats.processed += 1
            if result is not None:
                yield item, result
        return

    LOG.info(f"Starting parallel {mode} decomposition of {len(items)} molecules with {workers} workers")
    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_decompose_single, item.mol, item.name, settings, mode)
            for item in items
        ]
        # collect in submission order so merges are reproducible
        for item, future in zip(items, futures):
            status, payload = future.result()
            stats.processed += 1
            if status == 'ok':
                yield item, payload
            else:
                if strict_mode_enabled():
                    raise RuntimeError(f"Decomposition failed for '{item.name}': {payload}")
                stats.record_failure(item.name, payload)
