# -*- coding: ascii -*-
"""
Forest and network assembly.

Molecules are loaded, decomposed (optionally in a process pool) and merged
one at a time into the shared structures. Molecules that fail to load or
decompose are counted and skipped.
"""

import logging
from typing import Any, Iterable, List, Optional

from rdkit import Chem

from .config import ScaffoldSettings
from .decompose import DecompositionPath, decompose_canonical
from .graph import ScaffoldNetwork, ScaffoldTree
from .guard import BatchStats
from .parallel import CANONICAL, ENUMERATIVE, decompose_batch
from .standardize import LoadResult, load_molecule

LOG = logging.getLogger(__name__)


def load_inputs(molecules: Iterable[Any], stats: Optional[BatchStats] = None,
                standardize: bool = False) -> List[LoadResult]:
    """
    Load molecules given as RDKit mols, SMILES strings or (SMILES, name) pairs.

    Returns:
        Successfully loaded items; failures are counted in stats
    """
    stats = stats if stats is not None else BatchStats()
    loaded = []
    for i, item in enumerate(molecules):
        if isinstance(item, (tuple, list)):
            smiles, name = item[0], (item[1] if len(item) > 1 else None)
            result = load_molecule(smiles, name, standardize)
        else:
            result = load_molecule(item, None, standardize)
        if result.ok:
            loaded.append(result)
        else:
            stats.record_invalid(result.name or f"#{i}", result.error)
    return loaded


def add_path_to_forest(forest: List[ScaffoldTree], path: DecompositionPath,
                       settings: Optional[ScaffoldSettings] = None) -> Optional[ScaffoldTree]:
    """
    Insert one canonical path into the tree holding its root scaffold.

    A new tree is appended to the forest when no tree holds the root.

    Returns:
        The tree the path went into, or None for an empty path
    """
    if not len(path):
        return None
    root_identity = path.terminal.identity
    for tree in forest:
        if root_identity in tree:
            tree.add_path(path)
            return tree
    tree = ScaffoldTree(settings)
    tree.add_path(path)
    forest.append(tree)
    return tree


def generate_tree(mol: Chem.Mol, settings: Optional[ScaffoldSettings] = None,
                  origin: Optional[str] = None) -> ScaffoldTree:
    """Scaffold tree of a single molecule."""
    settings = settings or ScaffoldSettings()
    tree = ScaffoldTree(settings)
    tree.add_path(decompose_canonical(mol, settings, origin))
    return tree


def build_forest(molecules: Iterable[Any], settings: Optional[ScaffoldSettings] = None,
                 workers: Optional[int] = 1, stats: Optional[BatchStats] = None,
                 standardize: bool = False) -> List[ScaffoldTree]:
    """
    Build scaffold trees for a collection of molecules.

    Molecules whose canonical paths end in the same root scaffold share one
    tree.

    Args:
        molecules: RDKit mols, SMILES strings or (SMILES, name) pairs
        settings: Decomposition settings
        workers: Worker processes for decomposition (1 = in-process)
        stats: Optional BatchStats receiving counts
        standardize: Run rdMolStandardize on inputs

    Returns:
        List of ScaffoldTree in order of first appearance
    """
    settings = settings or ScaffoldSettings()
    stats = stats if stats is not None else BatchStats()
    loaded = load_inputs(molecules, stats, standardize)

    forest: List[ScaffoldTree] = []
    for item, path in decompose_batch(loaded, settings, CANONICAL, workers, stats):
        if add_path_to_forest(forest, path, settings) is None:
            stats.record_no_scaffold(item.name)

    stats.log_summary()
    LOG.info(f"Built {len(forest)} scaffold trees")
    return forest


def build_network(molecules: Iterable[Any], settings: Optional[ScaffoldSettings] = None,
                  workers: Optional[int] = 1, stats: Optional[BatchStats] = None,
                  standardize: bool = False) -> ScaffoldNetwork:
    """
    Build one scaffold network from the enumerative decompositions of all molecules.

    Arguments as for build_forest.
    """
    settings = settings or ScaffoldSettings()
    stats = stats if stats is not None else BatchStats()
    loaded = load_inputs(molecules, stats, standardize)

    network = ScaffoldNetwork(settings)
    for item, dag in decompose_batch(loaded, settings, ENUMERATIVE, workers, stats):
        if not len(dag):
            stats.record_no_scaffold(item.name)
            continue
        network.add_dag(dag)

    stats.log_summary()
    LOG.info(f"Built scaffold network with {len(network)} nodes")
    return network
