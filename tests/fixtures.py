"""Мини‑родословные для юнит‑тестов."""
import pandas as pd

from src.lineage import MAX_DEPTH

# R ← D × S, у D и S предков нет
simple = [
    {"id": "R", "name": "Root", "dam_id": "D", "sire_id": "S"},
    {"id": "D", "name": "Dam", "dam_id": None, "sire_id": None},
    {"id": "S", "name": "Sire", "dam_id": None, "sire_id": None},
]

# O1 (R × P1) дал O1a (возвратное скрещивание с P1), O2 (R × P2) – без потомства
mixed = pd.DataFrame(
    [
        {"id": "R",   "name": "Root", "dam_id": None, "sire_id": None},
        {"id": "P1",  "name": "P1",   "dam_id": None, "sire_id": None},
        {"id": "P2",  "name": "P2",   "dam_id": None, "sire_id": None},
        {"id": "O1",  "name": "O1",   "dam_id": "R",  "sire_id": "P1"},
        {"id": "O2",  "name": "O2",   "dam_id": "R",  "sire_id": "P2"},
        {"id": "O1a", "name": "O1a",  "dam_id": "O1", "sire_id": "P1"},
    ]
)

# два сибса без потомства от одной пары
clutch = [
    {"id": "D", "dam_id": None, "sire_id": None},
    {"id": "S", "dam_id": None, "sire_id": None},
    {"id": "H1", "dam_id": "D", "sire_id": "S"},
    {"id": "H2", "dam_id": "D", "sire_id": "S"},
]

# X0 ← X1 ← … ← X12 только по отцу: MAX_DEPTH + 2 звена
sire_chain = [
    {"id": f"X{i}", "dam_id": None, "sire_id": f"X{i + 1}"}
    for i in range(MAX_DEPTH + 2)
] + [{"id": f"X{MAX_DEPTH + 2}", "dam_id": None, "sire_id": None}]
