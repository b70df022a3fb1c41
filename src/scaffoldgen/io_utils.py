# -*- coding: ascii -*-
"""Tabular export of decomposition results."""

import json
import os
from typing import Any, Dict, List, Union

import pandas as pd

from .decompose import DecompositionPath
from .graph import ScaffoldGraph

GRAPH_COLUMNS = [
    'index', 'identity', 'smiles', 'level', 'parents', 'children',
    'origin_count', 'origins',
]


def graph_to_records(graph: ScaffoldGraph) -> List[Dict[str, Any]]:
    """One record per live node; link and origin lists are JSON strings."""
    records = []
    for node in graph.all_nodes():
        records.append({
            'index': node.index,
            'identity': node.identity,
            'smiles': node.smiles,
            'level': node.level,
            'parents': json.dumps([p.index for p in graph.get_parents(node)]),
            'children': json.dumps([c.index for c in graph.get_children(node)]),
            'origin_count': node.origin_count,
            'origins': json.dumps(node.origins),
        })
    return records


def graph_to_frame(graph: ScaffoldGraph) -> pd.DataFrame:
    """Scaffold/frequency table of a tree or network."""
    return pd.DataFrame(graph_to_records(graph), columns=GRAPH_COLUMNS)


def path_to_records(path: DecompositionPath) -> List[Dict[str, Any]]:
    """One record per fragment of a canonical path."""
    return [
        {
            'origin': path.origin,
            'level': frag.level,
            'smiles': frag.smiles,
            'identity': frag.identity,
            'removed_ring': json.dumps(list(frag.removed_ring)) if frag.removed_ring else '',
        }
        for frag in path
    ]


def write_table(records: Union[List[Dict[str, Any]], pd.DataFrame], path: str) -> None:
    """Write table file (parquet/csv)."""
    df = records if isinstance(records, pd.DataFrame) else pd.DataFrame(records)
    if df.empty:
        return

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    if path.endswith('.parquet'):
        df.to_parquet(path, index=False)
    elif path.endswith('.csv'):
        df.to_csv(path, index=False)
    else:
        raise ValueError(f"Unsupported file format: {path}")


def read_table(path: str) -> pd.DataFrame:
    """Read a table written by write_table."""
    if path.endswith('.parquet'):
        return pd.read_parquet(path)
    if path.endswith('.csv'):
        return pd.read_csv(path)
    raise ValueError(f"Unsupported file format: {path}")
