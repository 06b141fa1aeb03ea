from __future__ import annotations

import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from core.domain.models import ZERO, Assembly, Node
from core.parsers.bom_xml import BomParseError
from core.services.bom_tree import BomTree
from core.services.bom_validation import validate_bom
from core.services.cost_rollup import assembly_breakdown, shopping_list, subtree_costs
from core.use_case.bom_file import load_bom_file, load_sample


def _print_outline(node: Optional[Node], costs: Dict[str, Decimal], depth: int = 0) -> None:
    if node is None:
        return
    pad = "  " * depth
    cost = costs.get(node.id, ZERO)
    if isinstance(node, Assembly):
        print(f"{pad}[A] {node.name}  ({cost:.2f})")
        for child in node.children:
            _print_outline(child, costs, depth + 1)
    else:
        print(f"{pad}- {node.name} x{node.quantity}  ({cost:.2f})")


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if os.getenv("BOM_DEBUG_DIAGNOSTICS", "0").strip() in {"1", "true", "True"} else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args:
        print("Usage: python bom_summary.py <FILE.bom.xml>")
        print("       python bom_summary.py --sample")
        return 2

    tree = BomTree()
    try:
        if args[0] == "--sample":
            load_sample(tree)
        else:
            load_bom_file(tree, Path(args[0]))
    except (BomParseError, ValueError, FileNotFoundError) as e:
        print(f"[ERROR] {type(e).__name__}: {e}")
        return 1

    # un solo passaggio per tutti i costi
    costs = subtree_costs(tree.root)
    _print_outline(tree.root, costs)
    print()

    breakdown = assembly_breakdown(tree)
    print(f"Assemblies: {len(breakdown)}")
    for asm, depth, cost in breakdown:
        print(f"  {'  ' * depth}{asm.name}: {cost:.2f}")
    print()

    lines = shopping_list(tree)
    print(f"Shopping list: {len(lines)} line(s)")
    for ln in lines:
        sku = ln.sku or "-"
        supplier = f"  [{ln.supplier}]" if ln.supplier else ""
        print(f"  {sku:<16} {ln.name:<32} x{ln.quantity:<4} {ln.total:>10.2f}{supplier}")
    print()

    total = ZERO if tree.root is None else costs.get(tree.root.id, ZERO)
    print(f"Total BOM cost: {total:.2f}")

    warnings = validate_bom(tree)
    if warnings:
        print(f"\nValidation warnings: {len(warnings)}")
        for w in warnings:
            print(f"  [WARN] {w.message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
