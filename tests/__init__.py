# -*- coding: ascii -*-
"""Test package for scaffoldgen."""

import unittest
import warnings

from rdkit import Chem


def canon(smiles):
    """Canonical SMILES of a SMILES string, for order-independent comparisons."""
    return Chem.MolToSmiles(Chem.MolFromSmiles(smiles))


class CleanLogsTestCase(unittest.TestCase):
    """Base test case that suppresses RDKit logging noise."""

    @classmethod
    def setUpClass(cls):
        """Suppress RDKit warnings; errors and critical messages stay enabled."""
        super().setUpClass()

        warnings.filterwarnings("ignore", category=DeprecationWarning, module="rdkit")
        warnings.filterwarnings("ignore", message=".*Kekulization.*", module="rdkit")

        from scaffoldgen.chem_compat import RDLogger
        RDLogger.DisableLog('rdApp.warning')
        RDLogger.DisableLog('rdApp.info')
        RDLogger.DisableLog('rdApp.debug')
