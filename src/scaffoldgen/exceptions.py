# -*- coding: ascii -*-
"""Exception hierarchy for scaffold decomposition."""

from typing import Optional


class ScaffoldError(Exception):
    """Base exception for scaffoldgen errors."""
    pass


class RingNotFoundError(ScaffoldError, ValueError):
    """A ring was queried against a ring set that does not contain it."""

    def __init__(self, message: str, ring_atoms: Optional[tuple] = None):
        self.ring_atoms = ring_atoms
        if ring_atoms is not None:
            super().__init__(f"{message}: atoms {ring_atoms}")
        else:
            super().__init__(message)


class RingNotRemovableError(ScaffoldError, ValueError):
    """Removal was requested for a ring that is not removable."""

    def __init__(self, message: str, ring_atoms: Optional[tuple] = None):
        self.ring_atoms = ring_atoms
        if ring_atoms is not None:
            super().__init__(f"{message}: atoms {ring_atoms}")
        else:
            super().__init__(message)


class NodeNotFoundError(ScaffoldError, KeyError):
    """A node is not (or no longer) part of a scaffold graph."""
    pass


class SettingsError(ScaffoldError, ValueError):
    """Invalid scaffold settings value."""
    pass


class SanitizationError(ScaffoldError, ValueError):
    """RDKit could not sanitize a fragment produced by an edit."""

    def __init__(self, message: str, smiles: Optional[str] = None):
        self.smiles = smiles
        if smiles is not None:
            super().__init__(f"{message} in: {smiles}")
        else:
            super().__init__(message)
