#!/usr/bin/env python3
"""
CLI‑обёртка: родословная особи → CSV‑таблицы для графика.

Примеры:
    python -m src.main --data_dir data --root R-001
    python -m src.main --data_dir data --root R-001 --max_depth 4 --out r001
    python -m src.main --data_dir data            # сводка по всем особям
"""
from __future__ import annotations
import argparse
import sys

from .lineage import MAX_DEPTH, LineageError
from .model import build_all_lineages, build_lineage


def _parse(argv=None):
    p = argparse.ArgumentParser("reptile lineage")
    p.add_argument("--data_dir", default="data",
                   help="директорий с reptiles.csv или путь к CSV")
    p.add_argument("--root", default=None,
                   help="id особи; без него – сводка по всем")
    p.add_argument("--max_depth", type=int, default=MAX_DEPTH,
                   help="сколько поколений предков раскрывать")
    p.add_argument("--out", default="lineage",
                   help="префикс выходных файлов")

    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse(argv)

    try:
        if args.root is None:
            summary = build_all_lineages(args.data_dir, max_depth=args.max_depth)
            summary.to_csv(f"{args.out}_summary.csv", index=False)
            print(f"✅  Saved {len(summary)} rows → {args.out}_summary.csv")
            return 0

        nodes, edges = build_lineage(args.data_dir, args.root, max_depth=args.max_depth)
    except LineageError as exc:
        print(f"❌  {exc}", file=sys.stderr)
        return 1

    nodes.to_csv(f"{args.out}_nodes.csv", index=False)
    edges.to_csv(f"{args.out}_edges.csv", index=False)
    print(f"✅  Saved {len(nodes)} nodes, {len(edges)} edges → {args.out}_*.csv")
    return 0


if __name__ == "__main__":
    sys.exit(main())
