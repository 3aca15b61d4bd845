"""
Плоский список особей и индекс по нему.

Каждая запись ссылается (необязательно) на мать ``dam_id`` и отца
``sire_id``. Остальные колонки (имя, пол, морфа…) проходят насквозь
в ``attrs`` и построителем родословной не трогаются.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple

import numpy as np
import pandas as pd

LOGGER = logging.getLogger(__name__)

DATA_FILE = "reptiles.csv"
ID_COLUMNS = ("id", "dam_id", "sire_id")
# колонки в стиле pedigree.csv
ALIASES = {"mother_id": "dam_id", "father_id": "sire_id"}


def _clean_id(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float):
        if np.isnan(value):
            return None
        # числовая колонка с пропусками хранится как float64: 1.0 → "1"
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Individual:
    id: str
    dam_id: str | None = None
    sire_id: str | None = None
    attrs: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Individual":
        """Запись из dict / строки DataFrame; NaN и пустые строки → None."""
        data = {ALIASES.get(k, k): v for k, v in dict(row).items()}
        animal_id = _clean_id(data.get("id"))
        if animal_id is None:
            raise ValueError(f"Record without id: {dict(row)!r}")
        attrs = {
            k: (None if isinstance(v, float) and np.isnan(v) else v)
            for k, v in data.items()
            if k not in ID_COLUMNS
        }
        return cls(
            id=animal_id,
            dam_id=_clean_id(data.get("dam_id")),
            sire_id=_clean_id(data.get("sire_id")),
            attrs=attrs,
        )

    @property
    def name(self) -> str:
        return self.attrs.get("name") or self.id

    def parent_ids(self) -> Tuple[str, ...]:
        return tuple(p for p in (self.dam_id, self.sire_id) if p is not None)

    def has_both_parents(self) -> bool:
        return self.dam_id is not None and self.sire_id is not None


class RecordIndex:
    """
    id → Individual и обратный вид «родитель → потомки».

    При повторяющихся id побеждает последняя запись (позиция в порядке
    обхода остаётся от первой).
    """

    def __init__(self, individuals: Iterable[Individual]):
        self._by_id: Dict[str, Individual] = {}
        for ind in individuals:
            if ind.id in self._by_id:
                LOGGER.warning("Duplicate id %r, keeping the last record", ind.id)
            self._by_id[ind.id] = ind

        self._offspring: Dict[str, List[Individual]] = {}
        for ind in self._by_id.values():
            # set: если dam_id == sire_id, потомок всё равно один раз
            for parent_id in dict.fromkeys(ind.parent_ids()):
                self._offspring.setdefault(parent_id, []).append(ind)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, animal_id: object) -> bool:
        return animal_id in self._by_id

    def __getitem__(self, animal_id: str) -> Individual:
        return self._by_id[animal_id]

    def __iter__(self) -> Iterator[Individual]:
        return iter(self._by_id.values())

    def get(self, animal_id: str | None) -> Individual | None:
        if animal_id is None:
            return None
        return self._by_id.get(animal_id)

    def offspring(self, animal_id: str) -> Tuple[Individual, ...]:
        return tuple(self._offspring.get(animal_id, ()))

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "id": ind.id, "dam_id": ind.dam_id, "sire_id": ind.sire_id,
                **{k: v for k, v in ind.attrs.items() if k not in ID_COLUMNS},
            }
            for ind in self
        ]
        if not rows:
            return pd.DataFrame(columns=list(ID_COLUMNS))
        return pd.DataFrame(rows)


def individuals_from_frame(df: pd.DataFrame) -> List[Individual]:
    """DataFrame (свежая выгрузка или кэш) → список особей в порядке строк."""
    df = df.rename(columns=ALIASES)
    df = df.astype(object).replace({np.nan: None})
    return [Individual.from_mapping(row) for row in df.to_dict("records")]


def load_individuals(path: str | Path) -> List[Individual]:
    """Читает CSV; если ``path`` – директорий, берётся ``reptiles.csv``."""
    path = Path(path)
    if path.is_dir():
        path = path / DATA_FILE
    df = pd.read_csv(path, dtype=str, keep_default_na=True)
    LOGGER.debug("Loaded %d rows from %s", len(df), path)
    return individuals_from_frame(df)
