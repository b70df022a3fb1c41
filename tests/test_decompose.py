# -*- coding: ascii -*-
"""Test canonical and enumerative decomposition."""

import unittest
from rdkit import Chem

from scaffoldgen.config import ScaffoldSettings
from scaffoldgen.decompose import (
    DecompositionPath, DecompositionState, decompose_canonical, decompose_enumerative,
    decomposition_state, make_fragment,
)
from scaffoldgen.rings import get_rings
from tests import CleanLogsTestCase, canon

SCENARIO = "C1CCCC(CC1)Cc1ccc2CCCc2c1"
BENZYLNAPHTHALENE = "c1ccc(Cc2ccc3ccccc3c2)cc1"


def canonical_path(smiles, settings=None):
    return decompose_canonical(Chem.MolFromSmiles(smiles), settings)


class TestCanonicalDecomposition(CleanLogsTestCase):

    def test_linker_attached_scenario(self):
        """Linker ring first, then the saturated ring of indane."""
        path = canonical_path(SCENARIO)
        self.assertEqual(path.smiles(), [
            canon(SCENARIO), canon("c1ccc2c(c1)CCC2"), canon("c1ccccc1"),
        ])
        self.assertEqual([f.level for f in path], [0, 1, 2])
        self.assertIsNone(path.scaffold.removed_ring)
        self.assertEqual(len(path[1].removed_ring), 7)

    def test_anthracene(self):
        path = canonical_path("c1ccc2cc3ccccc3cc2c1")
        self.assertEqual(path.smiles()[1:], [canon("c1ccc2ccccc2c1"), canon("c1ccccc1")])

    def test_epoxide(self):
        path = canonical_path("C1CCC2OC2C1")
        self.assertEqual(path.terminal.smiles, canon("C1=CCCCC1"))
        self.assertEqual(len(path), 2)

    def test_side_chains_are_stripped_first(self):
        path = canonical_path("CC(=O)Nc1ccc(O)cc1")
        self.assertEqual(path.smiles(), [canon("c1ccccc1")])

    def test_cage_is_terminal(self):
        mol = Chem.MolFromSmiles("C1C2CC3CC1CC(C2)C3")
        self.assertEqual(decomposition_state(mol), DecompositionState.TERMINAL)
        path = decompose_canonical(mol)
        self.assertEqual(len(path), 1)
        self.assertEqual(path.scaffold.level, 0)

    def test_decomposition_state(self):
        mol = Chem.MolFromSmiles("c1ccc2ccccc2c1")
        self.assertEqual(decomposition_state(mol), DecompositionState.HAS_REMOVABLE_RING)
        self.assertEqual(decomposition_state(Chem.MolFromSmiles("c1ccccc1")),
                         DecompositionState.TERMINAL)

    def test_no_rings(self):
        path = canonical_path("CCO")
        self.assertEqual(len(path), 0)
        self.assertIsNone(path.scaffold)
        self.assertIsNone(path.terminal)

    def test_origin(self):
        self.assertEqual(canonical_path("c1ccccc1C").origin, canon("c1ccccc1C"))
        path = decompose_canonical(Chem.MolFromSmiles("c1ccc2ccccc2c1"), origin="naph")
        self.assertEqual(path.origin, "naph")
        self.assertTrue(all(f.origin == "naph" for f in path))

    def test_levels_and_termination(self):
        """One ring per step, never more steps than rings."""
        molecules = [
            SCENARIO, BENZYLNAPHTHALENE, "c1ccc2cc3ccccc3cc2c1",
            "O=C1CCC(N1)c1ccc2OCOc2c1", "C1CC2(CCN1)CCc1ccccc12",
            "c1ccc(cc1)C1CC2CCC1C2",
        ]
        for smi in molecules:
            with self.subTest(smiles=smi):
                path = canonical_path(smi)
                self.assertEqual([f.level for f in path], list(range(len(path))))
                self.assertLessEqual(len(path), len(get_rings(path.scaffold.mol)))
                counts = [f.num_rings for f in path]
                self.assertEqual(counts, sorted(counts, reverse=True))
                self.assertEqual(decomposition_state(path.terminal.mol),
                                 DecompositionState.TERMINAL)

    def test_atom_order_independent(self):
        a = canonical_path("c1ccc(Cc2ccc3ccccc3c2)cc1").smiles()
        b = canonical_path("c1ccc2cc(Cc3ccccc3)ccc2c1").smiles()
        self.assertEqual(a, b)

    def test_murcko_paths(self):
        settings = ScaffoldSettings(scaffold_mode='murcko_framework')
        path = canonical_path("O=C1CCCC2=C1C=CC=C2", settings)
        self.assertTrue(all('O' not in s for s in path.smiles()))

    def test_path_rejects_level_gap(self):
        settings = ScaffoldSettings()
        path = DecompositionPath("x")
        path.append(make_fragment(Chem.MolFromSmiles("c1ccc2ccccc2c1"), 0, settings))
        with self.assertRaises(ValueError):
            path.append(make_fragment(Chem.MolFromSmiles("c1ccccc1"), 2, settings))

    def test_disconnected_fused_systems(self):
        """Disjoint ring systems are decomposed down to a single ring."""
        smi = "C1CCC2CCCCC2C1.C1CCC2CCCCC2C1"
        path = canonical_path(smi)
        self.assertEqual(len(path), 4)
        self.assertEqual(path[1].smiles, canon("C1CCCCC1.C1CCC2CCCCC2C1"))
        self.assertEqual(path.terminal.smiles, canon("C1CCCCC1"))
        self.assertEqual([len(get_rings(f.mol)) for f in path], [4, 3, 2, 1])


class TestDecompositionSettings(CleanLogsTestCase):

    def test_kekule_fragments(self):
        settings = ScaffoldSettings(determine_aromaticity=False)
        path = canonical_path("c1ccc2c(c1)CCCC2", settings)
        self.assertEqual(path.smiles(), [canon("c1ccc2c(c1)CCCC2"), canon("C1=CCCCC1")])
        for fragment in path:
            self.assertFalse(any(a.GetIsAromatic() for a in fragment.mol.GetAtoms()))

    def test_kekule_naphthalene(self):
        settings = ScaffoldSettings(determine_aromaticity=False)
        path = canonical_path("c1ccc2ccccc2c1", settings)
        self.assertEqual(path.smiles(), [canon("c1ccc2ccccc2c1"), canon("c1ccccc1")])

    def test_inchikey_identity(self):
        settings = ScaffoldSettings(identity_policy='inchikey')
        path = canonical_path(BENZYLNAPHTHALENE, settings)
        self.assertEqual(path.smiles(), canonical_path(BENZYLNAPHTHALENE).smiles())
        for fragment in path:
            self.assertEqual(len(fragment.identity), 27)
            self.assertNotEqual(fragment.identity, fragment.smiles)

    def test_inchikey_enumerative(self):
        mol = Chem.MolFromSmiles(BENZYLNAPHTHALENE)
        dag = decompose_enumerative(mol, ScaffoldSettings(identity_policy='inchikey'))
        self.assertEqual(len(dag), len(decompose_enumerative(mol)))
        self.assertEqual(len(dag.edges()), 4)
        self.assertEqual([f.smiles for f in dag.terminals()], [canon("c1ccccc1")])


class TestEnumerativeDecomposition(CleanLogsTestCase):

    def test_benzylnaphthalene(self):
        dag = decompose_enumerative(Chem.MolFromSmiles(BENZYLNAPHTHALENE))
        self.assertEqual(len(dag), 4)
        self.assertEqual(dag.root, canon(BENZYLNAPHTHALENE))
        self.assertEqual(sorted(f.smiles for f in dag.products(dag.root)),
                         sorted([canon("c1ccc2ccccc2c1"), canon("c1ccc(Cc2ccccc2)cc1")]))
        self.assertEqual([f.smiles for f in dag.terminals()], [canon("c1ccccc1")])
        self.assertEqual(dag.nodes[canon("c1ccccc1")].level, 2)
        self.assertEqual(len(dag.edges()), 4)

    def test_products_first(self):
        dag = decompose_enumerative(Chem.MolFromSmiles(BENZYLNAPHTHALENE))
        order = [f.identity for f in dag.products_first()]
        for source, product in dag.edges():
            self.assertLess(order.index(product), order.index(source))

    def test_canonical_path_is_in_dag(self):
        for smi in (SCENARIO, BENZYLNAPHTHALENE, "c1ccc2cc3ccccc3cc2c1"):
            with self.subTest(smiles=smi):
                mol = Chem.MolFromSmiles(smi)
                dag = decompose_enumerative(mol)
                path = decompose_canonical(mol)
                for a, b in zip(path.fragments, path.fragments[1:]):
                    self.assertIn((a.identity, b.identity), dag.edges())

    def test_terminal_and_ringless(self):
        dag = decompose_enumerative(Chem.MolFromSmiles("C1C2CC3CC1CC(C2)C3"))
        self.assertEqual(len(dag), 1)
        self.assertEqual(dag.edges(), [])
        self.assertEqual(len(decompose_enumerative(Chem.MolFromSmiles("CCO"))), 0)


if __name__ == '__main__':
    unittest.main()
