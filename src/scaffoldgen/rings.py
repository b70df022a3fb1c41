# -*- coding: ascii -*-
"""
Ring analysis for scaffold decomposition.

Rings are recomputed for every scaffold snapshot and never mutated. A ring
can be stripped from a scaffold when it is terminal (deleting it does not
split the other rings into more pieces), it is not the only ring, it is not
part of a bridged or cage system, and the residual scaffold is chemically
consistent.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, FrozenSet, Set, Tuple

from rdkit import Chem

from .chem_compat import (
    SANITIZE_ERRORS, remove_atoms, promote_bond, finalize_fragment,
    tag_source_atoms, source_index,
)
from .config import ScaffoldSettings
from .exceptions import RingNotFoundError, RingNotRemovableError
from .scaffold import scaffold_for
from .standardize import canonical_identity, canonical_smiles

LOG = logging.getLogger(__name__)

ISOLATED = 'isolated'
SPIRO = 'spiro'
FUSED = 'fused'
BRIDGED = 'bridged'

_MULTIPLE_BONDS = (Chem.BondType.DOUBLE, Chem.BondType.TRIPLE)


@dataclass(frozen=True)
class Ring:
    """One ring of a scaffold snapshot."""
    atoms: FrozenSet[int]
    bonds: FrozenSet[int]
    aromatic: bool

    @property
    def size(self) -> int:
        return len(self.atoms)

    @property
    def atom_tuple(self) -> Tuple[int, ...]:
        return tuple(sorted(self.atoms))


@dataclass
class RemovalCandidate:
    """A removable ring together with the scaffold left after removing it.

    Attributes:
        ring: Ring to remove
        residual: Scaffold after removal (sanitized, re-reduced)
        identity: Canonical identity of the residual
        smiles: Canonical SMILES of the residual
        private_atoms: Ring atoms not shared with any other ring
        lost_aromatic_atoms: Retained atoms that were aromatic before removal
            and are not aromatic afterwards
    """
    ring: Ring
    residual: Chem.Mol
    identity: str
    smiles: str
    private_atoms: FrozenSet[int]
    lost_aromatic_atoms: int = 0


def get_rings(mol: Chem.Mol) -> List[Ring]:
    """Rings of a sanitized scaffold, ordered by size then atom indices."""
    ri = mol.GetRingInfo()
    rings = []
    for atom_ring, bond_ring in zip(ri.AtomRings(), ri.BondRings()):
        aromatic = all(mol.GetBondWithIdx(b).GetIsAromatic() for b in bond_ring)
        rings.append(Ring(frozenset(atom_ring), frozenset(bond_ring), aromatic))
    rings.sort(key=lambda r: (r.size, r.atom_tuple))
    return rings


def _check_member(ring: Ring, rings: List[Ring]) -> None:
    if ring not in rings:
        raise RingNotFoundError("Ring is not part of the given ring set", ring.atom_tuple)


def _others(ring: Ring, rings: List[Ring]) -> List[Ring]:
    return [r for r in rings if r != ring]


def ring_fusion_type(ring: Ring, other: Ring) -> str:
    """Relation between two rings: isolated, spiro, fused or bridged."""
    shared = ring.atoms & other.atoms
    if not shared:
        return ISOLATED
    if len(shared) == 1:
        return SPIRO
    if len(shared) == 2 and ring.bonds & other.bonds:
        return FUSED
    return BRIDGED


def is_isolated_ring(ring: Ring, rings: List[Ring]) -> bool:
    """True when the ring shares no atom with any other ring."""
    return all(ring_fusion_type(ring, o) == ISOLATED for o in _others(ring, rings))


def private_atoms(ring: Ring, rings: List[Ring]) -> FrozenSet[int]:
    """Ring atoms that belong to no other ring."""
    shared = set()
    for other in _others(ring, rings):
        shared |= other.atoms
    return frozenset(ring.atoms - shared)


def has_fused_aromatic_rings(ring: Ring, rings: List[Ring]) -> bool:
    """True when another aromatic ring shares a bond with this ring."""
    _check_member(ring, rings)
    return any(o.aromatic and ring.bonds & o.bonds for o in _others(ring, rings))


def _components_holding(mol: Chem.Mol, excluded: FrozenSet[int], targets: Set[int]) -> int:
    """Count fragments of mol minus the excluded atoms that hold a target atom."""
    rw = Chem.RWMol(mol)
    for idx in sorted(excluded, reverse=True):
        rw.RemoveAtom(idx)
    # kept[i] is the index in mol of atom i of rw
    kept = [i for i in range(mol.GetNumAtoms()) if i not in excluded]
    frags = Chem.GetMolFrags(rw, sanitizeFrags=False)
    return sum(1 for frag in frags if any(kept[i] in targets for i in frag))


def is_ring_terminal(mol: Chem.Mol, ring: Ring, rings: Optional[List[Ring]] = None) -> bool:
    """
    Check whether a ring sits at the end of the ring system graph.

    The ring is terminal when deleting all of its atoms does not split the
    atoms of the remaining rings into more pieces than they already form.
    Ring systems that were disjoint before the deletion stay disjoint and
    do not count against the ring.
    """
    if rings is None:
        rings = get_rings(mol)
    _check_member(ring, rings)

    others = _others(ring, rings)
    if not others:
        return True
    remaining = set()
    for other in others:
        remaining |= other.atoms
    remaining -= ring.atoms
    if not remaining:
        return False
    before = _components_holding(mol, frozenset(), remaining)
    after = _components_holding(mol, ring.atoms, remaining)
    return after <= before


def _conjugated_at_fusion(mol: Chem.Mol, ring: Ring, private: Set[int]) -> bool:
    """True when a shared atom loses an aromatic or multiple bond to the ring."""
    for bond_idx in ring.bonds:
        bond = mol.GetBondWithIdx(bond_idx)
        if (bond.GetBeginAtomIdx() in private) == (bond.GetEndAtomIdx() in private):
            continue
        if bond.GetIsAromatic() or bond.GetBondType() in _MULTIPLE_BONDS:
            return True
    return False


def _strip_ring(mol: Chem.Mol, ring: Ring, rings: List[Ring],
                settings: ScaffoldSettings) -> Optional[Tuple[Chem.Mol, int]]:
    """
    Delete the private atoms of a ring and re-reduce the residual.

    Aromatic flags are kept only on atoms and bonds of the remaining aromatic
    rings. When the removed ring was aromatic, had a multiple bond at one of
    its shared atoms (Kekule or otherwise unsaturated rings), or was a
    three-membered heterocycle, each former fusion bond is promoted to a
    double bond if its endpoints can take it.

    Returns:
        (residual scaffold, number of atoms that lost aromaticity), or None
        when RDKit cannot sanitize the residual
    """
    others = _others(ring, rings)
    private = set(private_atoms(ring, rings))
    keep_aromatic_atoms = set()
    keep_aromatic_bonds = set()
    for other in others:
        if other.aromatic:
            keep_aromatic_atoms |= other.atoms
            keep_aromatic_bonds |= other.bonds

    hetero_three = ring.size == 3 and any(
        mol.GetAtomWithIdx(i).GetAtomicNum() != 6 for i in ring.atoms)
    compensate = ring.aromatic or hetero_three or _conjugated_at_fusion(mol, ring, private)

    rw = Chem.RWMol(mol)
    tag_source_atoms(rw)
    was_aromatic = {a.GetIdx() for a in rw.GetAtoms() if a.GetIsAromatic()}

    for idx in ring.atoms - private:
        atom = rw.GetAtomWithIdx(idx)
        if atom.GetIsAromatic() and idx not in keep_aromatic_atoms:
            atom.SetIsAromatic(False)
            atom.SetNoImplicit(False)

    fusion_bonds = []
    for bond_idx in ring.bonds:
        bond = rw.GetBondWithIdx(bond_idx)
        begin, end = bond.GetBeginAtomIdx(), bond.GetEndAtomIdx()
        if begin in private or end in private or bond_idx in keep_aromatic_bonds:
            continue
        if bond.GetIsAromatic():
            bond.SetIsAromatic(False)
            bond.SetBondType(Chem.BondType.SINGLE)
        fusion_bonds.append((begin, end))

    if compensate:
        for begin, end in fusion_bonds:
            promote_bond(rw, begin, end, ignore_atoms=private)

    edited = finalize_fragment(remove_atoms(rw, private).GetMol(), settings)
    if edited is None:
        return None
    try:
        residual = scaffold_for(edited, settings)
    except SANITIZE_ERRORS as e:
        LOG.debug(f"Residual of ring {ring.atom_tuple} rejected: {e}")
        return None
    if residual.GetNumAtoms() == 0:
        return None

    lost = 0
    for atom in residual.GetAtoms():
        src = source_index(atom)
        if src in was_aromatic and not atom.GetIsAromatic():
            if src in keep_aromatic_atoms and has_fused_aromatic_rings(ring, rings):
                # fused aromatic neighbours must stay aromatic
                return None
            lost += 1
    return residual, lost


def _candidate(mol: Chem.Mol, ring: Ring, rings: List[Ring],
               settings: ScaffoldSettings) -> Optional[RemovalCandidate]:
    if len(rings) < 2:
        return None
    if any(ring_fusion_type(ring, o) == BRIDGED for o in _others(ring, rings)):
        return None
    private = private_atoms(ring, rings)
    if not private:
        return None
    if not is_ring_terminal(mol, ring, rings):
        return None

    stripped = _strip_ring(mol, ring, rings, settings)
    if stripped is None:
        return None
    residual, lost = stripped
    return RemovalCandidate(
        ring=ring,
        residual=residual,
        identity=canonical_identity(residual, settings.identity_policy),
        smiles=canonical_smiles(residual),
        private_atoms=private,
        lost_aromatic_atoms=lost,
    )


def is_ring_removable(mol: Chem.Mol, ring: Ring, rings: List[Ring],
                      settings: Optional[ScaffoldSettings] = None) -> bool:
    """
    Check whether a ring may be stripped from the scaffold.

    Raises:
        RingNotFoundError: ring is not part of rings
    """
    _check_member(ring, rings)
    return _candidate(mol, ring, rings, settings or ScaffoldSettings()) is not None


def removable_candidates(mol: Chem.Mol, settings: Optional[ScaffoldSettings] = None,
                         rings: Optional[List[Ring]] = None) -> List[RemovalCandidate]:
    """All removable rings of a scaffold, each with its residual."""
    settings = settings or ScaffoldSettings()
    if rings is None:
        rings = get_rings(mol)
    candidates = []
    for ring in rings:
        cand = _candidate(mol, ring, rings, settings)
        if cand is not None:
            candidates.append(cand)
    LOG.debug(f"{len(candidates)}/{len(rings)} rings removable")
    return candidates


def remove_ring(mol: Chem.Mol, ring: Ring, rings: Optional[List[Ring]] = None,
                settings: Optional[ScaffoldSettings] = None) -> Chem.Mol:
    """
    Strip one ring from a scaffold.

    Raises:
        RingNotFoundError: ring is not part of rings
        RingNotRemovableError: ring is not removable
    """
    settings = settings or ScaffoldSettings()
    if rings is None:
        rings = get_rings(mol)
    _check_member(ring, rings)
    cand = _candidate(mol, ring, rings, settings)
    if cand is None:
        raise RingNotRemovableError("Ring cannot be removed", ring.atom_tuple)
    return cand.residual
