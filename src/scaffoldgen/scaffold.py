# -*- coding: ascii -*-
"""
Scaffold reduction.

A molecule is collapsed to its ring systems and the atoms linking them.
Five variants are supported (see ScaffoldMode):

- SCHUFFENHAUER_SCAFFOLD: rings, linkers and exocyclic double-bonded atoms
- MURCKO_FRAMEWORK: rings and linkers only
- BASIC_WIRE_FRAME: Murcko topology, all atoms carbon, all bonds single
- ELEMENTAL_WIRE_FRAME: Murcko topology with elements, all bonds single
- BASIC_FRAMEWORK: Murcko topology with bond orders, all atoms carbon
"""

import logging
from typing import List, Optional, Set, FrozenSet

from rdkit import Chem

from .chem_compat import remove_atoms, finalize_fragment, sanitize_or_none
from .config import ScaffoldMode, ScaffoldSettings
from .exceptions import SanitizationError
from .standardize import strip_for_identity

LOG = logging.getLogger(__name__)

_WIRE_FRAMES = (ScaffoldMode.BASIC_WIRE_FRAME, ScaffoldMode.ELEMENTAL_WIRE_FRAME)
_CARBON_ONLY = (ScaffoldMode.BASIC_WIRE_FRAME, ScaffoldMode.BASIC_FRAMEWORK)


def ring_atom_indices(mol: Chem.Mol) -> Set[int]:
    """All atoms that belong to at least one ring."""
    return {idx for ring in mol.GetRingInfo().AtomRings() for idx in ring}


def core_atoms(mol: Chem.Mol) -> Set[int]:
    """
    Ring atoms plus the acyclic atoms on paths between ring systems.

    Non-ring atoms of degree <= 1 are peeled off repeatedly until only
    rings and the chains connecting them remain.
    """
    ring_atoms = ring_atom_indices(mol)
    degree = {atom.GetIdx(): atom.GetDegree() for atom in mol.GetAtoms()}
    keep = set(degree)

    stack = [idx for idx, d in degree.items() if idx not in ring_atoms and d <= 1]
    while stack:
        idx = stack.pop()
        if idx not in keep:
            continue
        keep.discard(idx)
        for nbr in mol.GetAtomWithIdx(idx).GetNeighbors():
            n = nbr.GetIdx()
            if n in keep:
                degree[n] -= 1
                if n not in ring_atoms and degree[n] <= 1:
                    stack.append(n)
    return keep


def exocyclic_double_bond_atoms(mol: Chem.Mol, core: Set[int]) -> Set[int]:
    """Atoms outside the core joined to it by a double bond (C=O, C=N, ...)."""
    extra = set()
    for idx in core:
        for bond in mol.GetAtomWithIdx(idx).GetBonds():
            other = bond.GetOtherAtomIdx(idx)
            if other not in core and bond.GetBondType() == Chem.BondType.DOUBLE:
                extra.add(other)
    return extra


def scaffold_atoms(mol: Chem.Mol, mode: ScaffoldMode = ScaffoldMode.SCHUFFENHAUER_SCAFFOLD,
                   retain_bond_orders: bool = True) -> Set[int]:
    """Indices of the atoms the given variant keeps."""
    keep = core_atoms(mol)
    if mode == ScaffoldMode.SCHUFFENHAUER_SCAFFOLD and retain_bond_orders:
        keep |= exocyclic_double_bond_atoms(mol, keep)
    return keep


def _saturate(mol: Chem.Mol) -> Optional[Chem.Mol]:
    """Copy with every multiple bond outside an aromatic ring made single.

    Aromaticity is perceived on the edited structure, so rings that are only
    aromatic after element unification or side-chain removal are judged the
    same way on every pass.
    """
    work = sanitize_or_none(Chem.Mol(mol))
    if work is None:
        return None
    for bond in work.GetBonds():
        if bond.GetIsAromatic():
            continue
        if bond.GetBondType() in (Chem.BondType.DOUBLE, Chem.BondType.TRIPLE):
            bond.SetBondType(Chem.BondType.SINGLE)
            bond.GetBeginAtom().SetNoImplicit(False)
            bond.GetEndAtom().SetNoImplicit(False)
    return work


def _single_bonds(rw: Chem.RWMol) -> None:
    for bond in rw.GetBonds():
        bond.SetBondType(Chem.BondType.SINGLE)
        bond.SetIsAromatic(False)
    for atom in rw.GetAtoms():
        atom.SetIsAromatic(False)
        atom.SetFormalCharge(0)
        atom.SetNumExplicitHs(0)
        atom.SetNoImplicit(False)


def _unify_elements(rw: Chem.RWMol) -> None:
    for atom in rw.GetAtoms():
        atom.SetAtomicNum(6)
        atom.SetFormalCharge(0)
        atom.SetNumExplicitHs(0)
        atom.SetNumRadicalElectrons(0)
        atom.SetNoImplicit(False)


def reduce(mol: Chem.Mol, mode: ScaffoldMode = ScaffoldMode.SCHUFFENHAUER_SCAFFOLD,
           retain_bond_orders: bool = True, settings: ScaffoldSettings = None) -> Chem.Mol:
    """
    Reduce a molecule to one of the scaffold variants.

    Side chains are deleted on the Kekule form so that removing an
    exocyclic double bond from an aromatic atom leaves a valid structure;
    aromaticity is re-perceived afterwards.

    Args:
        mol: Sanitized input molecule
        mode: Scaffold variant
        retain_bond_orders: If False, multiple bonds outside the rings that
            are aromatic in the reduced structure become single
        settings: Optional settings controlling aromaticity perception

    Returns:
        Scaffold molecule; an empty molecule when the input has no rings

    Raises:
        SanitizationError: RDKit rejects the reduced structure
    """
    if mol is None:
        raise ValueError("reduce() requires a molecule")
    mode = ScaffoldMode(mode)

    if mol.GetNumAtoms() == 0 or mol.GetRingInfo().NumRings() == 0:
        return Chem.Mol()

    work = strip_for_identity(mol)
    keep = scaffold_atoms(work, mode, retain_bond_orders)
    Chem.Kekulize(work, clearAromaticFlags=True)

    rw = remove_atoms(work, [a.GetIdx() for a in work.GetAtoms() if a.GetIdx() not in keep])
    if mode in _WIRE_FRAMES:
        _single_bonds(rw)
    if mode in _CARBON_ONLY:
        _unify_elements(rw)

    reduced = rw.GetMol()
    if not retain_bond_orders:
        reduced = _saturate(reduced)
    result = finalize_fragment(reduced, settings)
    if result is None:
        raise SanitizationError(f"{mode.value} could not be sanitized", Chem.MolToSmiles(mol))
    return result


def scaffold_for(mol: Chem.Mol, settings: ScaffoldSettings) -> Chem.Mol:
    """Reduce under the variant and bond-order policy of the given settings."""
    return reduce(mol, settings.scaffold_mode, settings.retain_bond_orders, settings)


def _extract(mol: Chem.Mol, atoms: Set[int]) -> List[Chem.Mol]:
    """Fragments made of the given atoms, hydrogens repaired at cut bonds."""
    if not atoms:
        return []
    work = strip_for_identity(mol)
    Chem.Kekulize(work, clearAromaticFlags=True)
    rw = remove_atoms(work, [a.GetIdx() for a in work.GetAtoms() if a.GetIdx() not in atoms])
    frag = finalize_fragment(rw.GetMol())
    if frag is None:
        raise SanitizationError("Fragment could not be sanitized", Chem.MolToSmiles(mol))
    return list(Chem.GetMolFrags(frag, asMols=True))


def get_side_chains(mol: Chem.Mol, mode: ScaffoldMode = ScaffoldMode.SCHUFFENHAUER_SCAFFOLD,
                    retain_bond_orders: bool = True) -> List[Chem.Mol]:
    """Substituent fragments removed when reducing to the given variant."""
    if mol.GetNumAtoms() == 0:
        return []
    if mol.GetRingInfo().NumRings() == 0:
        return [Chem.Mol(mol)]
    keep = scaffold_atoms(mol, ScaffoldMode(mode), retain_bond_orders)
    side = {a.GetIdx() for a in mol.GetAtoms()} - keep
    return _extract(mol, side)


def get_linkers(mol: Chem.Mol) -> List[Chem.Mol]:
    """Acyclic linker fragments joining ring systems."""
    if mol.GetNumAtoms() == 0 or mol.GetRingInfo().NumRings() == 0:
        return []
    linker = core_atoms(mol) - ring_atom_indices(mol)
    return _extract(mol, linker)


def get_ring_systems(mol: Chem.Mol) -> List[FrozenSet[int]]:
    """Atom sets of ring systems (rings joined by shared atoms)."""
    systems = []
    for ring in mol.GetRingInfo().AtomRings():
        merged = set(ring)
        rest = []
        for system in systems:
            if system & merged:
                merged |= system
            else:
                rest.append(system)
        systems = rest + [merged]
    return sorted((frozenset(s) for s in systems), key=lambda s: min(s))
