# -*- coding: ascii -*-
"""
Ring-removal cascade.

Each rule narrows the current candidate set to its preferred subset. An
empty preferred subset leaves the candidates unchanged, and the cascade
stops as soon as one candidate is left. Ties that survive every rule are
broken by the canonical SMILES of the residual scaffold, then by the
canonical ranks of the ring atoms.
"""

import logging
from collections import namedtuple
from typing import Callable, Dict, List, Optional

from rdkit import Chem

from .chem_compat import canonical_atom_ranks
from .config import ScaffoldSettings
from .rings import Ring, RemovalCandidate, get_rings, is_isolated_ring

LOG = logging.getLogger(__name__)

Rule = namedtuple('Rule', ['rule_id', 'description', 'select'])

RING_SIZE_CLASS = (3, 5, 6)


class CascadeContext:
    """Per-step view shared by all rules: the scaffold, its rings and settings."""

    def __init__(self, mol: Chem.Mol, settings: ScaffoldSettings,
                 rings: Optional[List[Ring]] = None):
        self.mol = mol
        self.settings = settings
        self.rings = rings if rings is not None else get_rings(mol)

    def heteroatoms(self, ring: Ring) -> List[int]:
        """Atomic numbers of the ring's non-carbon atoms."""
        nums = [self.mol.GetAtomWithIdx(i).GetAtomicNum() for i in ring.atoms]
        return [n for n in nums if n not in (1, 6)]


def _minimal(cands: List[RemovalCandidate], key: Callable) -> List[RemovalCandidate]:
    best = min(key(c) for c in cands)
    return [c for c in cands if key(c) == best]


def _linker_bond_count(mol: Chem.Mol) -> int:
    """Acyclic bonds between scaffold atoms, exocyclic double bonds excluded."""
    ri = mol.GetRingInfo()
    count = 0
    for bond in mol.GetBonds():
        if ri.NumBondRings(bond.GetIdx()):
            continue
        if bond.GetBeginAtom().GetDegree() > 1 and bond.GetEndAtom().GetDegree() > 1:
            count += 1
    return count


def _linker_attached(cands, ctx):
    return [c for c in cands if is_isolated_ring(c.ring, ctx.rings)]


def _hetero_three(cands, ctx):
    return [c for c in cands if c.ring.size == 3 and ctx.heteroatoms(c.ring)]


def _macrocycle(cands, ctx):
    return [c for c in cands if c.ring.size < ctx.settings.macrocycle_size]


def _fewer_linker_bonds(cands, ctx):
    return _minimal(cands, lambda c: _linker_bond_count(c.residual))


def _non_aromatic(cands, ctx):
    return [c for c in cands if not c.ring.aromatic]


def _aromatic_system(cands, ctx):
    return [c for c in cands if c.lost_aromatic_atoms == 0]


def _heteroatom_count(cands, ctx):
    if ctx.settings.heteroatom_preference == 'heterocycles_first':
        return _minimal(cands, lambda c: -len(ctx.heteroatoms(c.ring)))
    return _minimal(cands, lambda c: len(ctx.heteroatoms(c.ring)))


def _heteroatom_type(cands, ctx):
    # N is retained over O over S
    def key(c):
        het = ctx.heteroatoms(c.ring)
        return (het.count(7), het.count(8), het.count(16))
    return _minimal(cands, key)


def _ring_size_class(cands, ctx):
    return [c for c in cands if c.ring.size in RING_SIZE_CLASS]


def _smaller_ring(cands, ctx):
    return _minimal(cands, lambda c: c.ring.size)


def _linker_heteroatom(cands, ctx):
    ring_atoms = set()
    for ring in ctx.rings:
        ring_atoms |= ring.atoms

    def attached_via_heteroatom(ring):
        for idx in ring.atoms:
            atom = ctx.mol.GetAtomWithIdx(idx)
            if atom.GetAtomicNum() == 6:
                continue
            for bond in atom.GetBonds():
                other = bond.GetOtherAtom(atom)
                if other.GetIdx() in ring.atoms:
                    continue
                if other.GetIdx() in ring_atoms or other.GetDegree() > 1:
                    return True
        return False

    return [c for c in cands
            if is_isolated_ring(c.ring, ctx.rings) and attached_via_heteroatom(c.ring)]


RULES: Dict[str, Rule] = {
    'LINKER_ATTACHED': Rule('LINKER_ATTACHED',
                            'Remove rings attached only through a linker before fused rings',
                            _linker_attached),
    'HETERO_THREE': Rule('HETERO_THREE',
                         'Remove 3-membered heterocycles first',
                         _hetero_three),
    'MACROCYCLE': Rule('MACROCYCLE',
                       'Retain macrocycles while smaller rings remain',
                       _macrocycle),
    'FEWER_LINKER_BONDS': Rule('FEWER_LINKER_BONDS',
                               'Prefer residual scaffolds with fewer acyclic linker bonds',
                               _fewer_linker_bonds),
    'NON_AROMATIC': Rule('NON_AROMATIC',
                         'Remove non-aromatic rings before aromatic rings',
                         _non_aromatic),
    'AROMATIC_SYSTEM': Rule('AROMATIC_SYSTEM',
                            'Do not dissect aromatic systems into non-aromatic residues',
                            _aromatic_system),
    'HETEROATOM_COUNT': Rule('HETEROATOM_COUNT',
                             'Remove rings with fewest (or most) heteroatoms first',
                             _heteroatom_count),
    'HETEROATOM_TYPE': Rule('HETEROATOM_TYPE',
                            'Retain heteroatoms in the order N > O > S',
                            _heteroatom_type),
    'RING_SIZE_CLASS': Rule('RING_SIZE_CLASS',
                            'Remove rings of size 3, 5 and 6 first',
                            _ring_size_class),
    'SMALLER_RING': Rule('SMALLER_RING',
                         'Remove smaller rings before larger rings',
                         _smaller_ring),
    'LINKER_HETEROATOM': Rule('LINKER_HETEROATOM',
                              'Remove rings linked through a ring heteroatom first',
                              _linker_heteroatom),
}


def get_rule_description(rule_id: str) -> str:
    """Get ASCII description of rule."""
    rule = RULES.get(rule_id)
    return rule.description if rule else 'Unknown rule'


def active_rules(settings: ScaffoldSettings) -> List[Rule]:
    """Rules taking part in the cascade, in evaluation order."""
    return [RULES[r] for r in settings.rule_order if settings.is_rule_enabled(r)]


def apply_cascade(mol: Chem.Mol, candidates: List[RemovalCandidate],
                  settings: ScaffoldSettings, trace: Optional[List[str]] = None,
                  rings: Optional[List[Ring]] = None) -> List[RemovalCandidate]:
    """
    Narrow removal candidates rule by rule.

    Args:
        mol: Current scaffold
        candidates: Removable rings with their residuals
        settings: Rule toggles and order
        trace: Optional list receiving the ids of rules that narrowed the set
        rings: Ring set of mol (recomputed when omitted)

    Returns:
        Surviving candidates (one or more when the input was non-empty)
    """
    current = list(candidates)
    if len(current) <= 1:
        return current

    ctx = CascadeContext(mol, settings, rings)
    for rule in active_rules(settings):
        preferred = rule.select(current, ctx)
        if preferred and len(preferred) < len(current):
            current = preferred
            if trace is not None:
                trace.append(rule.rule_id)
        if len(current) == 1:
            break
    return current


def tie_break_key(candidate: RemovalCandidate, ranks: List[int]):
    """Deterministic ordering key for candidates that survive every rule."""
    return (candidate.smiles, tuple(sorted(ranks[i] for i in candidate.ring.atoms)))


def select_next(mol: Chem.Mol, candidates: List[RemovalCandidate],
                settings: Optional[ScaffoldSettings] = None,
                trace: Optional[List[str]] = None) -> Optional[RemovalCandidate]:
    """
    Pick the ring removed next on the canonical path.

    Returns:
        Winning candidate, or None when nothing is removable (terminal scaffold)
    """
    if not candidates:
        return None
    settings = settings or ScaffoldSettings()
    survivors = apply_cascade(mol, candidates, settings, trace)
    if len(survivors) == 1:
        return survivors[0]

    ranks = canonical_atom_ranks(mol)
    chosen = min(survivors, key=lambda c: tie_break_key(c, ranks))
    if trace is not None:
        trace.append('TIE_BREAK')
    return chosen


def select_all_admissible(mol: Chem.Mol, candidates: List[RemovalCandidate],
                          settings: Optional[ScaffoldSettings] = None) -> List[RemovalCandidate]:
    """Every removable ring; enumerative decomposition branches on all of them.

    The order follows the tie-break key so that branches are explored
    the same way regardless of input atom order.
    """
    if not candidates:
        return []
    ranks = canonical_atom_ranks(mol)
    return sorted(candidates, key=lambda c: tie_break_key(c, ranks))
