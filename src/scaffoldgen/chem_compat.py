# -*- coding: ascii -*-
"""RDKit adapter for scaffold decomposition.

All structural edits made by the reducer and the ring analyzer go through
this module, so hydrogen repair, bond-order promotion and aromaticity
perception are handled in one place. Chem and RDLogger are re-exported
for callers and tests.
"""

import logging
from typing import Iterable, List, Optional, Set, Tuple

from rdkit import Chem
from rdkit import RDLogger
from rdkit.Chem.rdmolops import AromaticityModel

LOG = logging.getLogger(__name__)

# Exceptions RDKit raises for structures it cannot sanitize or kekulize
SANITIZE_ERRORS = (Chem.rdchem.MolSanitizeException, ValueError, RuntimeError)

AROMATICITY_MODELS = {
    'default': AromaticityModel.AROMATICITY_DEFAULT,
    'rdkit': AromaticityModel.AROMATICITY_RDKIT,
    'simple': AromaticityModel.AROMATICITY_SIMPLE,
    'mdl': AromaticityModel.AROMATICITY_MDL,
}

# Atom property recording the atom index in the molecule an edit started from
SOURCE_PROP = '_scaffold_src'

_MULTIPLE_BONDS = (Chem.BondType.DOUBLE, Chem.BondType.TRIPLE)


def ring_sets(mol: Chem.Mol) -> List[Tuple[Tuple[int, ...], Tuple[int, ...]]]:
    """Return (atom indices, bond indices) for every ring of a sanitized molecule."""
    ri = mol.GetRingInfo()
    return list(zip(ri.AtomRings(), ri.BondRings()))


def perceive_aromaticity(mol: Chem.Mol, model: str = 'default') -> Chem.Mol:
    """Return a copy with aromatic flags reassigned under the given model."""
    if model not in AROMATICITY_MODELS:
        raise ValueError(f"Unknown aromaticity model: {model}")
    work = Chem.Mol(mol)
    Chem.Kekulize(work, clearAromaticFlags=True)
    Chem.SetAromaticity(work, AROMATICITY_MODELS[model])
    return work


def sanitize_or_none(mol: Chem.Mol) -> Optional[Chem.Mol]:
    """Sanitize in place; None when RDKit rejects the structure."""
    if mol is None:
        return None
    try:
        Chem.SanitizeMol(mol)
    except SANITIZE_ERRORS as e:
        LOG.debug(f"Sanitization failed: {e}")
        return None
    return mol


def finalize_fragment(mol: Chem.Mol, settings=None) -> Optional[Chem.Mol]:
    """
    Sanitize an edited fragment and apply the aromaticity policy.

    Args:
        mol: Edited molecule (typically from RWMol.GetMol())
        settings: ScaffoldSettings; None means default perception

    Returns:
        Sanitized molecule, or None when it cannot be sanitized
    """
    mol = sanitize_or_none(mol)
    if mol is None or settings is None:
        return mol

    if not settings.determine_aromaticity:
        try:
            Chem.Kekulize(mol, clearAromaticFlags=True)
        except SANITIZE_ERRORS as e:
            LOG.debug(f"Kekulization failed: {e}")
            return None
    elif settings.aromaticity_model != 'default':
        try:
            mol = perceive_aromaticity(mol, settings.aromaticity_model)
        except SANITIZE_ERRORS as e:
            LOG.debug(f"Aromaticity perception failed: {e}")
            return None
    return mol


def remove_atoms(mol: Chem.Mol, atom_indices: Iterable[int]) -> Chem.RWMol:
    """
    Delete atoms and repair hydrogens on the atoms they were bonded to.

    Aromatic heteroatoms get one explicit hydrogen per lost bond (RDKit
    cannot infer those); every other neighbour has its implicit hydrogen
    count recomputed on the next sanitization.

    Returns:
        Unsanitized RWMol without the removed atoms
    """
    drop = set(atom_indices)
    rw = Chem.RWMol(mol)

    lost = {}
    for idx in drop:
        for nbr in rw.GetAtomWithIdx(idx).GetNeighbors():
            n = nbr.GetIdx()
            if n not in drop:
                lost[n] = lost.get(n, 0) + 1

    for idx, count in lost.items():
        atom = rw.GetAtomWithIdx(idx)
        if atom.GetIsAromatic() and atom.GetAtomicNum() != 6:
            atom.SetNumExplicitHs(atom.GetNumExplicitHs() + count)
            atom.SetNoImplicit(True)
        else:
            atom.SetNoImplicit(False)
        atom.SetNumRadicalElectrons(0)

    for idx in sorted(drop, reverse=True):
        rw.RemoveAtom(idx)
    return rw


def promote_bond(rw: Chem.RWMol, begin: int, end: int,
                 ignore_atoms: Optional[Set[int]] = None) -> bool:
    """
    Promote a single bond to double where both ends can take it.

    Bonds to atoms in ignore_atoms (about to be deleted) do not count
    against the valence of the endpoints.

    Returns:
        True if the bond order was changed
    """
    ignore_atoms = ignore_atoms or set()
    bond = rw.GetBondBetweenAtoms(begin, end)
    if bond is None or bond.GetBondType() != Chem.BondType.SINGLE:
        return False

    for idx in (begin, end):
        atom = rw.GetAtomWithIdx(idx)
        if atom.GetIsAromatic():
            return False
        for other in atom.GetBonds():
            if other.GetIdx() == bond.GetIdx():
                continue
            if other.GetOtherAtomIdx(idx) in ignore_atoms:
                continue
            if other.GetBondType() in _MULTIPLE_BONDS or other.GetIsAromatic():
                return False

    bond.SetBondType(Chem.BondType.DOUBLE)
    bond.SetIsAromatic(False)
    for idx in (begin, end):
        rw.GetAtomWithIdx(idx).SetNoImplicit(False)
    return True


def tag_source_atoms(mol: Chem.Mol) -> None:
    """Record each atom's current index so it can be traced through edits."""
    for atom in mol.GetAtoms():
        atom.SetIntProp(SOURCE_PROP, atom.GetIdx())


def source_index(atom) -> Optional[int]:
    """Index an atom had when tag_source_atoms was last applied."""
    if atom.HasProp(SOURCE_PROP):
        return atom.GetIntProp(SOURCE_PROP)
    return None


def canonical_atom_ranks(mol: Chem.Mol) -> List[int]:
    """Canonical atom ranks with ties broken."""
    return list(Chem.CanonicalRankAtoms(mol, breakTies=True))


def fragment_count(mol: Chem.Mol) -> int:
    """Number of disconnected fragments."""
    if mol.GetNumAtoms() == 0:
        return 0
    return len(Chem.GetMolFrags(mol))
