# -*- coding: ascii -*-
"""
Scaffold tree and scaffold network.

Both are one arena-style graph: nodes live in a single dict keyed by an
integer index, parent/child links are plain index lists, and a second dict
maps canonical identity to index. The parent policy decides whether a node
keeps only its first-seen parent (tree) or every parent (network).

In both structures the parent of a scaffold is the smaller scaffold obtained
by removing one ring, so roots are the terminal, single-ring-system
scaffolds at level 0.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

import numpy as np
from rdkit import Chem

from .config import ScaffoldSettings
from .decompose import DecompositionDAG, DecompositionPath, ScaffoldFragment
from .exceptions import NodeNotFoundError
from .standardize import canonical_identity

LOG = logging.getLogger(__name__)


class ParentPolicy(str, Enum):
    SINGLE = 'single'
    MULTI = 'multi'


@dataclass(eq=False)
class ScaffoldNode:
    """One deduplicated scaffold in a tree or network."""
    index: int
    fragment: ScaffoldFragment
    level: int
    parents: List[int] = field(default_factory=list)
    children: List[int] = field(default_factory=list)
    origins: List[str] = field(default_factory=list)

    @property
    def identity(self) -> str:
        return self.fragment.identity

    @property
    def smiles(self) -> str:
        return self.fragment.smiles

    @property
    def mol(self) -> Chem.Mol:
        return self.fragment.mol

    @property
    def origin_count(self) -> int:
        return len(self.origins)

    def add_origin(self, origin: Optional[str]) -> None:
        if origin is not None and origin not in self.origins:
            self.origins.append(origin)

    def __repr__(self) -> str:
        return f"ScaffoldNode(index={self.index}, smiles={self.smiles!r}, level={self.level})"


NodeRef = Union[ScaffoldNode, str, int]


class ScaffoldGraph:
    """
    Deduplicated scaffold graph with a configurable parent policy.

    Mutations (add_*, merge, remove_node) must come from a single writer;
    read-only queries may run concurrently with each other.
    """

    def __init__(self, policy: ParentPolicy = ParentPolicy.MULTI,
                 settings: Optional[ScaffoldSettings] = None):
        self.policy = ParentPolicy(policy)
        self.settings = settings or ScaffoldSettings()
        self._nodes: Dict[int, ScaffoldNode] = {}
        self._by_identity: Dict[str, int] = {}
        self._next_index = 0

    # -- membership ---------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ScaffoldNode]:
        return iter(list(self._nodes.values()))

    def __contains__(self, item) -> bool:
        if isinstance(item, ScaffoldNode):
            return self._nodes.get(item.index) is item
        if isinstance(item, Chem.Mol):
            return self.lookup_by_molecule(item) is not None
        return item in self._by_identity

    def get_node(self, ref: NodeRef) -> Optional[ScaffoldNode]:
        """Resolve a node, identity string or index to a live node."""
        if isinstance(ref, ScaffoldNode):
            node = self._nodes.get(ref.index)
            return node if node is ref else None
        if isinstance(ref, str):
            idx = self._by_identity.get(ref)
            return self._nodes.get(idx) if idx is not None else None
        return self._nodes.get(ref)

    def lookup_by_molecule(self, fragment: Union[Chem.Mol, ScaffoldFragment]) -> Optional[ScaffoldNode]:
        """Node with the same canonical identity as the given scaffold, or None."""
        if isinstance(fragment, ScaffoldFragment):
            identity = fragment.identity
        else:
            identity = canonical_identity(fragment, self.settings.identity_policy)
        return self.get_node(identity)

    # -- insertion ----------------------------------------------------------

    def _link(self, parent: ScaffoldNode, child: ScaffoldNode) -> None:
        if parent.index not in child.parents:
            child.parents.append(parent.index)
        if child.index not in parent.children:
            parent.children.append(child.index)

    def add_fragment(self, fragment: ScaffoldFragment,
                     parents: Sequence[ScaffoldNode] = (),
                     origin: Optional[str] = None) -> ScaffoldNode:
        """
        Insert a fragment or merge it into the node with the same identity.

        A new node takes level 0 without parents, else first parent level + 1.
        An existing node keeps its level; under the single-parent policy it
        also keeps its first-seen parent while that parent is in the graph.
        A node orphaned by remove_node drops the dangling references and
        takes the incoming parent instead.
        """
        idx = self._by_identity.get(fragment.identity)
        if idx is not None:
            node = self._nodes[idx]
            if parents:
                orphaned = bool(node.parents)
                node.parents = [i for i in node.parents if i in self._nodes]
                orphaned = orphaned and not node.parents
                if self.policy is ParentPolicy.MULTI:
                    for parent in parents:
                        self._link(parent, node)
                elif orphaned:
                    self._link(parents[0], node)
        else:
            level = parents[0].level + 1 if parents else 0
            node = ScaffoldNode(self._next_index, fragment, level)
            self._nodes[node.index] = node
            self._by_identity[fragment.identity] = node.index
            self._next_index += 1
            linked = parents[:1] if self.policy is ParentPolicy.SINGLE else parents
            for parent in linked:
                self._link(parent, node)
        node.add_origin(origin)
        return node

    def add_path(self, path: DecompositionPath) -> List[ScaffoldNode]:
        """
        Insert a canonical decomposition path, terminal fragment first.

        Returns:
            Nodes of the path, ordered like path.fragments
        """
        nodes = []
        parent = None
        for fragment in reversed(path.fragments):
            parent = self.add_fragment(fragment, [parent] if parent is not None else (), path.origin)
            nodes.append(parent)
        nodes.reverse()
        return nodes

    def add_dag(self, dag: DecompositionDAG) -> List[ScaffoldNode]:
        """Insert an enumerative DAG; removal products become parents."""
        nodes = {}
        for fragment in dag.products_first():
            parents = [nodes[p.identity] for p in dag.products(fragment.identity)]
            nodes[fragment.identity] = self.add_fragment(fragment, parents, dag.origin)
        return [nodes[i] for i in dag.nodes]

    def _merge_from(self, other: 'ScaffoldGraph') -> None:
        for node in sorted(other.all_nodes(), key=lambda n: (n.level, n.index)):
            parents = [self.get_node(p.identity) for p in other.get_parents(node)]
            merged = self.add_fragment(node.fragment, [p for p in parents if p is not None])
            for origin in node.origins:
                merged.add_origin(origin)

    # -- queries ------------------------------------------------------------

    def all_nodes(self) -> List[ScaffoldNode]:
        return list(self._nodes.values())

    def nodes_at_level(self, level: int) -> List[ScaffoldNode]:
        """Nodes first inserted at the given level (empty if none)."""
        if level < 0:
            raise ValueError(f"Level must be >= 0, got {level}")
        return [n for n in self._nodes.values() if n.level == level]

    def max_level(self) -> int:
        """Deepest node level; -1 for an empty graph."""
        return max((n.level for n in self._nodes.values()), default=-1)

    def get_parents(self, ref: NodeRef) -> List[ScaffoldNode]:
        node = self._require(ref)
        return [self._nodes[i] for i in node.parents if i in self._nodes]

    def get_children(self, ref: NodeRef) -> List[ScaffoldNode]:
        node = self._require(ref)
        return [self._nodes[i] for i in node.children if i in self._nodes]

    def roots(self) -> List[ScaffoldNode]:
        """Nodes that never had a parent. Orphans of removed nodes are not roots."""
        return [n for n in self._nodes.values() if not n.parents]

    def get_root(self) -> Optional[ScaffoldNode]:
        """The single root, or None when there is not exactly one."""
        roots = self.roots()
        return roots[0] if len(roots) == 1 else None

    def edges(self) -> Set[Tuple[str, str]]:
        """(parent identity, child identity) for every live link."""
        result = set()
        for node in self._nodes.values():
            for idx in node.parents:
                parent = self._nodes.get(idx)
                if parent is not None:
                    result.add((parent.identity, node.identity))
        return result

    def to_adjacency_matrix(self) -> Tuple[np.ndarray, List[ScaffoldNode]]:
        """
        Symmetric 0/1 matrix of parent/child links between live nodes.

        Returns:
            (matrix, nodes) where nodes[i] is the node of row/column i
        """
        nodes = self.all_nodes()
        position = {node.index: i for i, node in enumerate(nodes)}
        matrix = np.zeros((len(nodes), len(nodes)), dtype=np.int8)
        for node in nodes:
            for idx in node.parents:
                if idx in position:
                    matrix[position[node.index], position[idx]] = 1
                    matrix[position[idx], position[node.index]] = 1
        return matrix, nodes

    def is_connected(self) -> bool:
        """True iff every live node is reachable from the roots via live links."""
        if not self._nodes:
            return True
        stack = [n.index for n in self.roots()]
        seen = set()
        while stack:
            idx = stack.pop()
            if idx in seen:
                continue
            seen.add(idx)
            node = self._nodes[idx]
            for nxt in node.children + node.parents:
                if nxt in self._nodes and nxt not in seen:
                    stack.append(nxt)
        return len(seen) == len(self._nodes)

    def has_single_root(self) -> bool:
        return len(self.roots()) == 1

    # -- removal ------------------------------------------------------------

    def _require(self, ref: NodeRef) -> ScaffoldNode:
        node = self.get_node(ref)
        if node is None:
            raise NodeNotFoundError(f"Node not in graph: {ref!r}")
        return node

    def remove_node(self, ref: NodeRef) -> ScaffoldNode:
        """
        Delete a node. Children are not re-linked: they keep a dangling
        parent reference and become unreachable unless another parent holds
        them. Connectivity and root checks report the result.

        Raises:
            NodeNotFoundError: node is not part of this graph
        """
        node = self._require(ref)
        del self._nodes[node.index]
        del self._by_identity[node.identity]
        for idx in node.parents:
            parent = self._nodes.get(idx)
            if parent is not None and node.index in parent.children:
                parent.children.remove(node.index)
        LOG.debug(f"Removed node {node.index} ({node.smiles})")
        return node


class ScaffoldTree(ScaffoldGraph):
    """Single-parent scaffold graph built from canonical paths."""

    def __init__(self, settings: Optional[ScaffoldSettings] = None):
        super().__init__(ParentPolicy.SINGLE, settings)

    def merge_tree(self, other: 'ScaffoldGraph') -> bool:
        """
        Merge another tree sharing this tree's root scaffold.

        Returns:
            False (and no change) when the other tree's root is not a node here
        """
        root = other.get_root()
        if root is None or root.identity not in self._by_identity:
            return False
        self._merge_from(other)
        return True


class ScaffoldNetwork(ScaffoldGraph):
    """Multi-parent scaffold graph built from enumerative DAGs."""

    def __init__(self, settings: Optional[ScaffoldSettings] = None):
        super().__init__(ParentPolicy.MULTI, settings)

    def merge_network(self, other: 'ScaffoldGraph') -> None:
        self._merge_from(other)
