# core/services/cost_rollup.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from core.domain.models import ZERO, Assembly, Node, Part
from core.services.bom_tree import BomTree


def subtree_costs(root: Optional[Node]) -> Dict[str, Decimal]:
    """
    Costo totale di ogni nodo (per id) in un solo passaggio post-order.

    Same totals as ``BomTree.calculate_total_cost`` node by node, without the
    quadratic re-traversal: compute once per render pass, then look up.
    """
    out: Dict[str, Decimal] = {}
    if root is None:
        return out

    # stack: (node, children_done)
    stack: List[Tuple[Node, bool]] = [(root, False)]
    while stack:
        node, done = stack.pop()
        if isinstance(node, Part):
            out[node.id] = node.line_total
            continue
        if done:
            out[node.id] = sum((out[c.id] for c in node.children), ZERO)
            continue
        stack.append((node, True))
        for child in reversed(node.children):
            stack.append((child, False))
    return out


@dataclass
class ShoppingLine:
    key: str
    name: str
    sku: str
    supplier: str
    unit_cost: Decimal
    quantity: int = 0
    total: Decimal = ZERO


def _line_key(part: Part) -> Tuple[str, str]:
    code = (part.sku or "").strip().upper() or (part.name or "").strip().upper()
    return code, (part.supplier or "").strip().upper()


def shopping_list(tree: BomTree) -> List[ShoppingLine]:
    """
    Righe di acquisto aggregate per (SKU o nome, fornitore), in ordine di prima
    apparizione. Le quantità si sommano tra tutte le occorrenze nel tree.
    """
    lines: Dict[Tuple[str, str], ShoppingLine] = {}
    for part in tree.get_all_parts():
        key = _line_key(part)
        line = lines.get(key)
        if line is None:
            line = ShoppingLine(
                key=key[0],
                name=part.name,
                sku=part.sku,
                supplier=part.supplier,
                unit_cost=part.cost,
            )
            lines[key] = line
        line.quantity += part.quantity
        line.total += part.line_total
    return list(lines.values())


def assembly_breakdown(tree: BomTree) -> List[Tuple[Assembly, int, Decimal]]:
    """(assembly, depth, costo sottoalbero) per ogni assembly, pre-order."""
    costs = subtree_costs(tree.root)
    return [(a, a.depth(), costs.get(a.id, ZERO)) for a in tree.get_all_assemblies()]
