import pandas as pd

from src.lineage import assemble_lineage
from src.model import build_all_lineages, build_lineage, collect_nodes, generations, lineage_tables
from .fixtures import mixed, simple


def test_collect_nodes_reaches_mates():
    root = assemble_lineage(mixed, "R")
    assert list(collect_nodes(root)) == ["R", "O1", "P2", "P1"]


def test_generations():
    root = assemble_lineage(simple, "R")
    assert generations(root) == {"R": 0, "D": -1, "S": -1}

    root = assemble_lineage(mixed, "R")
    assert generations(root) == {"R": 0, "O1": 1, "P2": 0, "P1": 0}


def test_lineage_tables():
    nodes, edges = lineage_tables(assemble_lineage(mixed, "R"))

    real = nodes[nodes["kind"] == "node"]
    assert list(real["id"]) == ["R", "O1", "P2", "P1"]
    assert real.set_index("id").loc["R", "is_root"]

    grouped = nodes[nodes["kind"] == "grouped"].set_index("id")
    assert grouped.loc["O2", "group"] == "P2:R"
    assert grouped.loc["O2", "generation"] == 1
    assert grouped.loc["O1a", "group"] == "O1:P1"
    assert grouped.loc["O1a", "generation"] == 2

    relation = {(s, t): r for s, t, r in edges.itertuples(index=False)}
    # ребро R → O1 уже есть как «dam», «child» его не дублирует
    assert relation[("R", "O1")] == "dam"
    assert relation[("P1", "O1")] == "sire"
    assert relation[("P2:R", "O2")] == "group"
    assert relation[("R", "P2:R")] == "pair"
    assert relation[("P2", "P2:R")] == "pair"
    assert len(edges) == len(relation)


def test_tables_are_idempotent():
    first = lineage_tables(assemble_lineage(mixed, "R"))
    second = lineage_tables(assemble_lineage(mixed, "R"))
    pd.testing.assert_frame_equal(first[0], second[0])
    pd.testing.assert_frame_equal(first[1], second[1])


def test_build_lineage_from_frame():
    nodes, edges = build_lineage(mixed, "O1", max_depth=1)
    assert nodes.loc[nodes["is_root"], "id"].tolist() == ["O1"]
    assert set(nodes.loc[nodes["kind"] == "node", "id"]) == {"O1", "R", "P1", "P2"}


def test_build_all_lineages():
    summary = build_all_lineages(mixed)
    assert list(summary["root_id"]) == ["R", "P1", "P2", "O1", "O2", "O1a"]
    row = summary.set_index("root_id").loc["R"]
    assert row["ancestors"] == 0
    assert row["descendants"] == 1
    assert row["grouped"] == 2
