"""
Родословное дерево особи: предки + потомки вокруг одной «фокусной» особи.

Порядок работы ``assemble_lineage``:

1. ``RecordIndex`` – id → запись по всему набору;
2. ``classify_descendants`` – кто из потомков сам дал потомство
   (глобально, по всему набору, а не только по видимой ветке);
3. ``NodeBuilder`` – рекурсивное построение предков от корня,
   с ограничением глубины и мемоизацией (циклы в данных безопасны);
4. реальные потомки («есть своя линия») подвешиваются ко всем
   родителям, которые уже есть в дереве; у потомков без линии
   достраивается второй родитель;
5. ``group_leaf_offspring`` – потомки без своего потомства собираются
   в одну группу на пару родителей; один и тот же список отдаётся
   обоим родителям.

Граф может содержать циклы (A.sire == A и т.п.), поэтому узлы сравниваются
по идентичности, а ``repr`` не рекурсивен.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Union

import pandas as pd

from .records import Individual, RecordIndex, individuals_from_frame

LOGGER = logging.getLogger(__name__)

MAX_DEPTH = 10
SEPARATOR = ":"

Records = Union[pd.DataFrame, Sequence[Individual], Sequence[Mapping]]
LeafGroups = Dict[str, List[Individual]]


class LineageError(Exception):
    pass


class EmptyDataset(LineageError, ValueError):
    def __init__(self):
        super().__init__("No individuals supplied")


class RootNotFound(LineageError, LookupError):
    def __init__(self, root_id):
        super().__init__(f"Individual {root_id!r} not found")
        self.root_id = root_id


@dataclass(eq=False)
class Parents:
    dam: "Node | None" = None
    sire: "Node | None" = None


@dataclass(eq=False, repr=False)
class Node:
    """
    Особь в дереве.

    ``children_without_descendants`` – общий (тот же объект) список с
    партнёром по паре. Если у узла несколько партнёров, здесь первая
    группа в порядке обхода набора; у второго партнёра будет своя
    группа, поэтому списки двух родителей совпадают только для первой
    пары узла. Все группы – в ``leaf_groups``.
    """

    individual: Individual
    depth: int = 0
    children: List["Node"] = field(default_factory=list)
    children_without_descendants: List[Individual] = field(default_factory=list)
    parents: Parents = field(default_factory=Parents)
    # все группы, в которых участвует узел: pair_key → общий список
    leaf_groups: LeafGroups = field(default_factory=dict)
    # партнёры по этим группам (иначе второй родитель может быть недостижим)
    mates: List["Node"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.individual.id

    @property
    def name(self) -> str:
        return self.individual.name

    def __repr__(self) -> str:
        dam, sire = self.parents.dam, self.parents.sire
        return (
            f"Node(id={self.id!r}, dam={dam.id if dam else None!r}, "
            f"sire={sire.id if sire else None!r}, children={len(self.children)}, "
            f"grouped={len(self.children_without_descendants)})"
        )


def pair_key(a: str, b: str) -> str:
    """Ключ неупорядоченной пары: (dam, sire) и (sire, dam) совпадают."""
    return f"{min(a, b)}{SEPARATOR}{max(a, b)}"


def classify_descendants(index: RecordIndex) -> FrozenSet[str]:
    """
    Особи, у которых есть «своя линия».

    Правило одного поколения: помечается особь хотя бы с одной ссылкой
    на родителя, у которой есть хотя бы один собственный потомок. Если
    смотреть от её родителя, это два поколения вниз (родитель → особь →
    её потомство), но от самой особи проверяется только одно: внуки не
    нужны. Особи без родителей пропускаются – потомками они быть не
    могут. Результат не зависит от выбранного корня.
    """
    frame = index.to_frame()[["id", "dam_id", "sire_id"]]
    edges = (
        frame.melt(id_vars="id", value_vars=["dam_id", "sire_id"], value_name="parent")
        .dropna(subset=["parent"])
        .rename(columns={"id": "child"})[["parent", "child"]]
        .drop_duplicates()
    )
    if edges.empty:
        return frozenset()

    parents = set(edges["parent"])
    # потомки, которые сами стоят в колонке родителей
    with_line = edges.loc[edges["child"].isin(parents), "child"]
    return frozenset(with_line)


class NodeBuilder:
    """
    Узлы предков с мемоизацией по id.

    Узел регистрируется в ``nodes`` до обхода родителей, поэтому
    повторный вход в тот же id (цикл) возвращает недостроенный узел
    вместо бесконечной рекурсии.
    """

    def __init__(self, index: RecordIndex, max_depth: int = MAX_DEPTH):
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.index = index
        self.max_depth = max_depth
        self.nodes: Dict[str, Node] = {}

    def build(self, animal_id: str | None, depth: int = 0) -> Node | None:
        if animal_id is None or depth > self.max_depth:
            return None
        ind = self.index.get(animal_id)
        if ind is None:
            LOGGER.debug("Unknown individual %r, relationship dropped", animal_id)
            return None

        node = self.nodes.get(animal_id)
        if node is not None:
            return node

        node = Node(ind, depth=depth)
        self.nodes[animal_id] = node
        node.parents.dam = self.build(ind.dam_id, depth + 1)
        node.parents.sire = self.build(ind.sire_id, depth + 1)
        return node


def group_leaf_offspring(
    index: RecordIndex,
    has_descendants: Iterable[str],
    placed_ids: Iterable[str],
) -> LeafGroups:
    """
    pair_key → потомки без своей линии, в порядке обхода набора.

    Берутся только особи с обоими известными родителями, не помеченные
    ``classify_descendants`` и не построенные уже полноценным узлом.
    Особь с одним известным родителем в группы не попадает.
    """
    has_descendants = set(has_descendants)
    placed = set(placed_ids)
    groups: LeafGroups = {}
    for ind in index:
        if ind.id in has_descendants or ind.id in placed:
            continue
        if not ind.has_both_parents():
            if ind.parent_ids():
                LOGGER.debug("%r has a single known parent, not grouped", ind.id)
            continue
        groups.setdefault(pair_key(ind.dam_id, ind.sire_id), []).append(ind)
    return groups


def _as_individuals(records: Records) -> List[Individual]:
    if isinstance(records, pd.DataFrame):
        return individuals_from_frame(records)
    return [
        r if isinstance(r, Individual) else Individual.from_mapping(r)
        for r in records
    ]


def _attach_offspring(
    index: RecordIndex,
    builder: NodeBuilder,
    has_descendants: FrozenSet[str],
) -> None:
    """
    Обход потомства каждого узла дерева, включая узлы, появившиеся по ходу.

    * потомок со своей линией строится (на глубине родителя) и
      подвешивается в ``children``; ребро (родитель, потомок) – один раз;
    * у потомка без линии строится второй родитель, если его ещё нет,
      чтобы группа была видна у обоих.

    Новый узел тянет за собой предков, поэтому обход идёт, пока в
    ``builder.nodes`` остаются необработанные узлы.
    """
    relations = set()
    done = set()
    while len(done) < len(builder.nodes):
        for parent_id, parent in list(builder.nodes.items()):
            if parent_id in done:
                continue
            done.add(parent_id)
            for ind in index.offspring(parent_id):
                if ind.id in has_descendants:
                    if (parent_id, ind.id) in relations:
                        continue
                    parent.children.append(builder.build(ind.id, parent.depth))
                    relations.add((parent_id, ind.id))
                elif ind.has_both_parents() and ind.id not in builder.nodes:
                    mate_id = ind.sire_id if ind.dam_id == parent_id else ind.dam_id
                    builder.build(mate_id, parent.depth)


def _attach_groups(groups: LeafGroups, nodes: Dict[str, Node]) -> None:
    for key, group in groups.items():
        first = group[0]
        dam, sire = nodes.get(first.dam_id), nodes.get(first.sire_id)
        if dam is None or sire is None:
            continue
        # dict.fromkeys: dam и sire могут быть одним узлом
        for node in dict.fromkeys((dam, sire)):
            node.leaf_groups[key] = group
            if not node.children_without_descendants:
                node.children_without_descendants = group
        if dam is not sire:
            if sire not in dam.mates:
                dam.mates.append(sire)
            if dam not in sire.mates:
                sire.mates.append(dam)


def assemble_lineage(records: Records, root_id: str, max_depth: int = MAX_DEPTH) -> Node:
    """
    Полное дерево для ``root_id``.

    ``records`` – плоский набор (список ``Individual``/dict или DataFrame);
    ничего не скачивается, набор не изменяется.

    Raises:
        EmptyDataset: набор пуст.
        RootNotFound: ``root_id`` нет в наборе.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    index = RecordIndex(_as_individuals(records))
    if not len(index):
        raise EmptyDataset()

    has_descendants = classify_descendants(index)

    builder = NodeBuilder(index, max_depth)
    root = builder.build(str(root_id), 0)
    if root is None:
        raise RootNotFound(root_id)

    _attach_offspring(index, builder, has_descendants)

    groups = group_leaf_offspring(index, has_descendants, builder.nodes)
    _attach_groups(groups, builder.nodes)

    LOGGER.debug(
        "Lineage %r: %d nodes, %d leaf groups", root.id, len(builder.nodes), len(groups)
    )
    return root
