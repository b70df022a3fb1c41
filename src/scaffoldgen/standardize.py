# -*- coding: ascii -*-
"""Molecule loading and canonical identity."""

import logging
from typing import NamedTuple, Optional, Union

from rdkit import Chem
from rdkit.Chem import inchi
from rdkit.Chem.MolStandardize import rdMolStandardize

from .chem_compat import SANITIZE_ERRORS

LOG = logging.getLogger(__name__)


class LoadResult(NamedTuple):
    """Outcome of loading one input molecule.

    Exactly one of mol / error is set.
    """
    name: str
    smiles: Optional[str]
    mol: Optional[Chem.Mol]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.mol is not None and self.error is None


def std_from_smiles(smi: str, do_tautomer: bool = False) -> Optional[Chem.Mol]:
    """Standardize molecule from SMILES using rdMolStandardize.

    Disconnected fragments are kept; scaffolds of salts and mixtures
    retain every ring system.
    """
    if smi is None:
        return None

    mol = Chem.MolFromSmiles(smi)
    if mol is None:
        return None

    mol = rdMolStandardize.Cleanup(mol)
    mol = rdMolStandardize.Uncharger().uncharge(mol)

    try:
        Chem.SanitizeMol(mol)
    except SANITIZE_ERRORS:
        return None

    if do_tautomer:
        te = rdMolStandardize.TautomerEnumerator()
        mol = te.Canonicalize(mol)

    return mol


def load_molecule(item: Union[str, Chem.Mol], name: Optional[str] = None,
                  standardize: bool = False) -> LoadResult:
    """
    Load one molecule at the adapter boundary.

    Never raises for bad input: failures come back as a LoadResult with
    error set, so batch callers can filter them.

    Args:
        item: SMILES string or RDKit molecule
        name: Provenance name (defaults to the input SMILES)
        standardize: Run rdMolStandardize cleanup/uncharge first

    Returns:
        LoadResult
    """
    if item is None:
        return LoadResult(name or '', None, None, 'no input')

    if isinstance(item, Chem.Mol):
        smiles = Chem.MolToSmiles(item) if item.GetNumAtoms() else ''
        name = name or smiles
        if item.GetNumAtoms() == 0:
            return LoadResult(name, smiles, None, 'empty molecule')
        mol = std_from_smiles(smiles) if standardize else Chem.Mol(item)
        if mol is None:
            return LoadResult(name, smiles, None, 'standardization failed')
        return LoadResult(name, smiles, mol)

    smiles = str(item).strip()
    name = name or smiles
    if not smiles:
        return LoadResult(name, smiles, None, 'empty SMILES')

    if standardize:
        mol = std_from_smiles(smiles)
    else:
        mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        LOG.warning(f"Could not parse molecule '{name}': {smiles}")
        return LoadResult(name, smiles, None, 'unparseable SMILES')
    if mol.GetNumAtoms() == 0:
        return LoadResult(name, smiles, None, 'empty molecule')
    return LoadResult(name, smiles, mol)


def strip_for_identity(mol: Chem.Mol) -> Chem.Mol:
    """Copy with isotopes, atom-map numbers and stereochemistry removed."""
    dm = Chem.Mol(mol)
    for atom in dm.GetAtoms():
        if atom.GetIsotope():
            atom.SetIsotope(0)
        atom.SetAtomMapNum(0)
    Chem.RemoveStereochemistry(dm)
    return dm


def canonical_smiles(mol: Chem.Mol) -> str:
    """Canonical SMILES of a fragment; aromaticity is perceived on a copy."""
    if mol is None:
        raise ValueError("canonical_smiles() requires a molecule")
    if mol.GetNumAtoms() == 0:
        return ''
    work = Chem.Mol(mol)
    Chem.SanitizeMol(work)
    return Chem.MolToSmiles(work)


def to_inchikey(mol: Chem.Mol) -> str:
    """Convert molecule to InChIKey, fallback to canonical SMILES."""
    if mol.GetNumAtoms() == 0:
        return ''
    inchi_str = inchi.MolToInchi(mol)
    if inchi_str:
        key = inchi.InchiToInchiKey(inchi_str)
        if key:
            return key
    LOG.debug("InChI generation failed, falling back to canonical SMILES")
    return canonical_smiles(mol)


def canonical_identity(mol: Chem.Mol, policy: str = 'smiles') -> str:
    """
    Structure-invariant key used for every node merge decision.

    Args:
        mol: Scaffold fragment
        policy: 'smiles' (canonical SMILES) or 'inchikey'

    Returns:
        Opaque comparable key; equal keys mean the same scaffold
    """
    if policy == 'smiles':
        return canonical_smiles(mol)
    if policy == 'inchikey':
        return to_inchikey(mol)
    raise ValueError(f"Unknown identity policy: {policy}")
