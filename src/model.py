"""
Родословная → плоские таблицы для отрисовки.

    * build_lineage       – одно дерево: узлы + рёбра (DataFrame)
    * build_all_lineages  – сводка по каждой особи набора (медленно, O(n²))
"""
from __future__ import annotations
import logging
from collections import deque
from pathlib import Path
from typing import Dict, List, Tuple, Union

import pandas as pd
from tqdm import tqdm

from .lineage import MAX_DEPTH, EmptyDataset, Node, assemble_lineage
from .records import Individual, individuals_from_frame, load_individuals

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
LOGGER = logging.getLogger(__name__)

NODE_COLUMNS = ["id", "name", "dam_id", "sire_id", "generation", "kind", "group", "is_root"]
EDGE_COLUMNS = ["source", "target", "relation"]
SUMMARY_COLUMNS = ["root_id", "name", "ancestors", "descendants", "grouped"]

Data = Union[str, Path, pd.DataFrame, List[Individual]]


def _load_data(data: Data) -> List[Individual]:
    if isinstance(data, pd.DataFrame):
        return individuals_from_frame(data)
    if isinstance(data, (str, Path)):
        return load_individuals(data)
    return list(data)


# --------------------------------------------------------------------------- #
# 1. Обход дерева
# --------------------------------------------------------------------------- #
def _neighbours(node: Node):
    for parent in (node.parents.dam, node.parents.sire):
        if parent is not None:
            yield parent
    yield from node.children
    yield from node.mates


def collect_nodes(root: Node) -> Dict[str, Node]:
    """Все узлы дерева (BFS по родителям, детям и партнёрам), каждый один раз."""
    found: Dict[str, Node] = {}
    queue = deque([root])
    while queue:
        node = queue.popleft()
        if node.id in found:
            continue
        found[node.id] = node
        queue.extend(_neighbours(node))
    return found


def generations(root: Node) -> Dict[str, int]:
    """
    Поколение относительно корня: родители −1, дети +1, партнёры – то же.

    Узел получает номер при первом достижении в BFS, поэтому при
    циклах/инбридинге побеждает кратчайший путь от корня.
    """
    gen = {root.id: 0}
    queue = deque([root])
    while queue:
        node = queue.popleft()
        here = gen[node.id]
        steps = [(p, here - 1) for p in (node.parents.dam, node.parents.sire) if p is not None]
        steps += [(c, here + 1) for c in node.children]
        steps += [(m, here) for m in node.mates]
        for other, value in steps:
            if other.id not in gen:
                gen[other.id] = value
                queue.append(other)
    return gen


# --------------------------------------------------------------------------- #
# 2. Таблицы
# --------------------------------------------------------------------------- #
def lineage_tables(root: Node) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """(nodes, edges) – то, что нужно коду графика; дерево не меняется."""
    nodes = collect_nodes(root)
    gen = generations(root)

    node_rows = []
    edge_rows = []
    seen_edges = set()

    def add_edge(source: str, target: str, relation: str):
        if (source, target) in seen_edges:
            return
        seen_edges.add((source, target))
        edge_rows.append({"source": source, "target": target, "relation": relation})

    for node in nodes.values():
        ind = node.individual
        node_rows.append({
            "id": node.id,
            "name": node.name,
            "dam_id": ind.dam_id,
            "sire_id": ind.sire_id,
            "generation": gen.get(node.id),
            "kind": "node",
            "group": None,
            "is_root": node is root,
        })
        if node.parents.dam is not None:
            add_edge(node.parents.dam.id, node.id, "dam")
        if node.parents.sire is not None:
            add_edge(node.parents.sire.id, node.id, "sire")

    # рёбра «ребёнок» – только те, что не покрыты dam/sire выше
    for node in nodes.values():
        for child in node.children:
            add_edge(node.id, child.id, "child")

    groups_done = set()
    for node in nodes.values():
        for key, group in node.leaf_groups.items():
            if key in groups_done:
                continue
            groups_done.add(key)
            first = group[0]
            level = max(gen.get(first.dam_id, 0), gen.get(first.sire_id, 0)) + 1
            add_edge(first.dam_id, key, "pair")
            add_edge(first.sire_id, key, "pair")
            for ind in group:
                node_rows.append({
                    "id": ind.id,
                    "name": ind.name,
                    "dam_id": ind.dam_id,
                    "sire_id": ind.sire_id,
                    "generation": level,
                    "kind": "grouped",
                    "group": key,
                    "is_root": False,
                })
                add_edge(key, ind.id, "group")

    return (
        pd.DataFrame(node_rows, columns=NODE_COLUMNS),
        pd.DataFrame(edge_rows, columns=EDGE_COLUMNS),
    )


# --------------------------------------------------------------------------- #
# 3. Точки входа
# --------------------------------------------------------------------------- #
def build_lineage(
    data: Data,
    root_id: str,
    max_depth: int = MAX_DEPTH,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    LOGGER.info("📦  Loading data …")
    individuals = _load_data(data)

    LOGGER.info("🌳  Building lineage for %s (max depth %d) …", root_id, max_depth)
    root = assemble_lineage(individuals, root_id, max_depth=max_depth)

    nodes, edges = lineage_tables(root)
    LOGGER.info("✅  %d nodes, %d edges", len(nodes), len(edges))
    return nodes, edges


def build_all_lineages(data: Data, max_depth: int = MAX_DEPTH) -> pd.DataFrame:
    """По строке на особь: сколько предков, потомков и сгруппированных."""
    LOGGER.info("📦  Loading data …")
    individuals = _load_data(data)
    if not individuals:
        raise EmptyDataset()
    # при дублях id остаётся последняя запись, как в RecordIndex
    unique = list({ind.id: ind for ind in individuals}.values())

    rows = []
    for ind in tqdm(unique, desc="lineages"):
        root = assemble_lineage(individuals, ind.id, max_depth=max_depth)
        nodes, _ = lineage_tables(root)
        real = nodes[nodes["kind"] == "node"]
        rows.append({
            "root_id": ind.id,
            "name": ind.name,
            "ancestors": int((real["generation"] < 0).sum()),
            "descendants": int((real["generation"] > 0).sum()),
            "grouped": int((nodes["kind"] == "grouped").sum()),
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
