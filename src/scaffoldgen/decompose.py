# -*- coding: ascii -*-
"""
Per-molecule scaffold decomposition.

Canonical mode follows the rule cascade and yields one fragment per
level. Enumerative mode branches on every removable ring (breadth-first)
and merges converging branches by canonical identity.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from rdkit import Chem

from .config import ScaffoldSettings
from .rings import get_rings, removable_candidates
from .rules import select_next, select_all_admissible
from .scaffold import scaffold_for
from .standardize import canonical_identity, canonical_smiles

LOG = logging.getLogger(__name__)


class DecompositionState(str, Enum):
    HAS_REMOVABLE_RING = 'has_removable_ring'
    TERMINAL = 'terminal'


@dataclass(frozen=True)
class ScaffoldFragment:
    """Scaffold produced at one decomposition step.

    Attributes:
        mol: Fragment structure (not used for equality)
        identity: Canonical identity used for merging
        smiles: Canonical SMILES
        level: Number of rings removed from the initial scaffold
        origin: Name of the molecule the fragment was derived from
        removed_ring: Atom indices (in the previous fragment) of the ring
            whose removal produced this fragment
    """
    mol: Chem.Mol = field(compare=False, repr=False)
    identity: str
    smiles: str
    level: int
    origin: Optional[str] = None
    removed_ring: Optional[Tuple[int, ...]] = field(default=None, compare=False)

    @property
    def num_rings(self) -> int:
        return len(get_rings(self.mol))


def make_fragment(mol: Chem.Mol, level: int, settings: ScaffoldSettings,
                  origin: Optional[str] = None,
                  removed_ring: Optional[Tuple[int, ...]] = None) -> ScaffoldFragment:
    return ScaffoldFragment(
        mol=mol,
        identity=canonical_identity(mol, settings.identity_policy),
        smiles=canonical_smiles(mol),
        level=level,
        origin=origin,
        removed_ring=removed_ring,
    )


class DecompositionPath:
    """Canonical decomposition of one molecule, level 0 first."""

    def __init__(self, origin: Optional[str], fragments: Optional[List[ScaffoldFragment]] = None):
        self.origin = origin
        self.fragments: List[ScaffoldFragment] = list(fragments or [])

    def append(self, fragment: ScaffoldFragment) -> None:
        expected = len(self.fragments)
        if fragment.level != expected:
            raise ValueError(f"Fragment level {fragment.level} does not follow level {expected - 1}")
        self.fragments.append(fragment)

    def __len__(self) -> int:
        return len(self.fragments)

    def __iter__(self) -> Iterator[ScaffoldFragment]:
        return iter(self.fragments)

    def __getitem__(self, i) -> ScaffoldFragment:
        return self.fragments[i]

    @property
    def scaffold(self) -> Optional[ScaffoldFragment]:
        return self.fragments[0] if self.fragments else None

    @property
    def terminal(self) -> Optional[ScaffoldFragment]:
        return self.fragments[-1] if self.fragments else None

    def smiles(self) -> List[str]:
        return [f.smiles for f in self.fragments]

    def __repr__(self) -> str:
        return f"DecompositionPath(origin={self.origin!r}, smiles={self.smiles()!r})"


@dataclass
class DecompositionDAG:
    """Enumerative decomposition of one molecule.

    nodes maps identity -> fragment; removals maps identity -> identities of
    the fragments reachable by removing one ring.
    """
    origin: Optional[str] = None
    root: Optional[str] = None
    nodes: Dict[str, ScaffoldFragment] = field(default_factory=dict)
    removals: Dict[str, List[str]] = field(default_factory=dict)

    def add_node(self, fragment: ScaffoldFragment) -> bool:
        """Add a fragment; False when its identity is already present."""
        if fragment.identity in self.nodes:
            return False
        self.nodes[fragment.identity] = fragment
        self.removals.setdefault(fragment.identity, [])
        if self.root is None:
            self.root = fragment.identity
        return True

    def add_edge(self, source: str, product: str) -> None:
        targets = self.removals.setdefault(source, [])
        if product not in targets:
            targets.append(product)

    def products(self, identity: str) -> List[ScaffoldFragment]:
        return [self.nodes[i] for i in self.removals.get(identity, [])]

    def edges(self) -> List[Tuple[str, str]]:
        return [(src, dst) for src, dsts in self.removals.items() for dst in dsts]

    def terminals(self) -> List[ScaffoldFragment]:
        return [self.nodes[i] for i, dsts in self.removals.items() if not dsts]

    def products_first(self) -> List[ScaffoldFragment]:
        """Fragments ordered so every removal product precedes its source."""
        ordered = []
        seen = set()

        def visit(identity):
            if identity in seen:
                return
            seen.add(identity)
            for product in self.removals.get(identity, []):
                visit(product)
            ordered.append(self.nodes[identity])

        for fragment in sorted(self.nodes.values(), key=lambda f: -f.level):
            visit(fragment.identity)
        return ordered

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, identity: str) -> bool:
        return identity in self.nodes


def _origin_of(mol: Chem.Mol, origin: Optional[str]) -> str:
    if origin is not None:
        return origin
    return Chem.MolToSmiles(mol)


def decomposition_state(mol: Chem.Mol, settings: Optional[ScaffoldSettings] = None) -> DecompositionState:
    """TERMINAL when no ring of the scaffold can be removed."""
    if removable_candidates(mol, settings or ScaffoldSettings()):
        return DecompositionState.HAS_REMOVABLE_RING
    return DecompositionState.TERMINAL


def decompose_canonical(mol: Chem.Mol, settings: Optional[ScaffoldSettings] = None,
                        origin: Optional[str] = None) -> DecompositionPath:
    """
    Decompose a molecule along the rule cascade.

    Args:
        mol: Input molecule (reduced to its scaffold first)
        settings: Decomposition settings
        origin: Provenance name (defaults to the input SMILES)

    Returns:
        DecompositionPath; empty when the molecule has no rings
    """
    settings = settings or ScaffoldSettings()
    origin = _origin_of(mol, origin)
    path = DecompositionPath(origin)

    scaffold = scaffold_for(mol, settings)
    if scaffold.GetNumAtoms() == 0:
        LOG.debug(f"No scaffold for {origin}")
        return path

    current = make_fragment(scaffold, 0, settings, origin)
    path.append(current)

    # each removal lowers the cycle rank by one, so this bounds the loop
    for _ in range(len(get_rings(scaffold))):
        rings = get_rings(current.mol)
        chosen = select_next(current.mol, removable_candidates(current.mol, settings, rings), settings)
        if chosen is None:
            break
        current = make_fragment(chosen.residual, current.level + 1, settings, origin,
                                chosen.ring.atom_tuple)
        path.append(current)

    LOG.debug(f"Canonical path for {origin}: {' -> '.join(path.smiles())}")
    return path


def decompose_enumerative(mol: Chem.Mol, settings: Optional[ScaffoldSettings] = None,
                          origin: Optional[str] = None) -> DecompositionDAG:
    """
    Decompose a molecule along every admissible removal order.

    Breadth-first, so each fragment keeps the level at which it was first
    reached.

    Returns:
        DecompositionDAG rooted at the scaffold; empty when there are no rings
    """
    settings = settings or ScaffoldSettings()
    origin = _origin_of(mol, origin)
    dag = DecompositionDAG(origin=origin)

    scaffold = scaffold_for(mol, settings)
    if scaffold.GetNumAtoms() == 0:
        LOG.debug(f"No scaffold for {origin}")
        return dag

    root = make_fragment(scaffold, 0, settings, origin)
    dag.add_node(root)
    queue = deque([root.identity])

    while queue:
        frag = dag.nodes[queue.popleft()]
        candidates = removable_candidates(frag.mol, settings)
        for cand in select_all_admissible(frag.mol, candidates, settings):
            if cand.identity not in dag:
                child = ScaffoldFragment(
                    mol=cand.residual,
                    identity=cand.identity,
                    smiles=cand.smiles,
                    level=frag.level + 1,
                    origin=origin,
                    removed_ring=cand.ring.atom_tuple,
                )
                dag.add_node(child)
                queue.append(child.identity)
            dag.add_edge(frag.identity, cand.identity)

    LOG.debug(f"Enumerative DAG for {origin}: {len(dag)} fragments, {len(dag.edges())} removals")
    return dag
