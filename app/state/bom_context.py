# app/state/bom_context.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from core.domain.models import ZERO, Assembly, Node, Part, ValidationWarning
from core.services.bom_tree import BomTree
from core.services.bom_validation import validate_bom
from core.services.cost_rollup import ShoppingLine, shopping_list, subtree_costs
from core.use_case.bom_file import load_bom_file, load_sample, save_bom_file

_LOG = logging.getLogger(__name__)
_DEBUG_DIAG = os.getenv("BOM_DEBUG_DIAGNOSTICS", "0").strip() in {"1", "true", "True"}


@dataclass
class BomContext:
    """
    Stato della sessione di editing, consumato dalla GUI.

    Every mutation goes through the tree's operations and is followed by
    ``refresh()``: validation report, cost cache and shopping list are
    rebuilt once per pass instead of per node.
    """
    tree: BomTree = field(default_factory=BomTree)
    path: Optional[Path] = None
    selected: Optional[Node] = None
    dirty: bool = False

    warnings: List[ValidationWarning] = field(default_factory=list)
    costs_by_id: Dict[str, Decimal] = field(default_factory=dict)
    lines: List[ShoppingLine] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.refresh()

    # ------------------------
    # Derived state
    # ------------------------
    def refresh(self) -> None:
        self.warnings = validate_bom(self.tree)
        self.costs_by_id = subtree_costs(self.tree.root)
        self.lines = shopping_list(self.tree)
        if _DEBUG_DIAG:
            _LOG.debug(
                "[diag] context refresh nodes=%s warnings=%s",
                len(self.costs_by_id),
                len(self.warnings),
            )

    @property
    def total_cost(self) -> Decimal:
        root = self.tree.root
        return ZERO if root is None else self.costs_by_id.get(root.id, ZERO)

    def cost_for(self, node: Optional[Node]) -> Decimal:
        if node is None:
            return ZERO
        return self.costs_by_id.get(node.id, ZERO)

    def _touch(self) -> None:
        self.dirty = True
        self.refresh()

    # ------------------------
    # Mutations (UI entrypoints)
    # ------------------------
    def add_assembly(self, name: str = "") -> Assembly:
        """Nuova assembly sotto la selezione (o sotto la root; root se il tree è vuoto)."""
        parent = self._target_assembly()
        asm = self.tree.create_assembly(name, parent)
        self.selected = asm
        self._touch()
        return asm

    def add_part(self, data: Optional[Mapping[str, Any]] = None) -> Part:
        part = self.tree.create_part(data, self._target_assembly())
        self.selected = part
        self._touch()
        return part

    def _target_assembly(self) -> Optional[Assembly]:
        sel = self.selected
        if isinstance(sel, Assembly):
            return sel
        if isinstance(sel, Part) and sel.parent is not None:
            return sel.parent
        root = self.tree.root
        return root if isinstance(root, Assembly) else None

    def select(self, item_id: str) -> Optional[Node]:
        self.selected = self.tree.find_item_by_id(item_id)
        return self.selected

    def save_details(self, data: Mapping[str, Any]) -> Optional[Node]:
        node = self.selected
        if isinstance(node, Part):
            self.tree.update_part(node, data)
        elif isinstance(node, Assembly):
            self.tree.rename_assembly(node, data.get("name"))
        else:
            return None
        self._touch()
        return node

    def delete(self, item_id: str) -> bool:
        node = self.tree.find_item_by_id(item_id)
        if node is None:
            return False
        removed = self.tree.delete_item(node)
        if removed:
            if self.selected is not None and (
                self.selected is node or (isinstance(node, Assembly) and node.contains(self.selected))
            ):
                self.selected = None
            self._touch()
        return removed

    def move(self, item_id: str, new_parent_id: str) -> bool:
        node = self.tree.find_item_by_id(item_id)
        target = self.tree.find_item_by_id(new_parent_id)
        if node is None or not isinstance(target, Assembly):
            return False
        moved = self.tree.move_item(node, target)
        if moved:
            self._touch()
        return moved

    # ------------------------
    # File boundary
    # ------------------------
    def open(self, path: Path) -> None:
        load_bom_file(self.tree, path)
        self.path = Path(path)
        self.selected = None
        self.dirty = False
        self.refresh()

    def open_sample(self) -> None:
        load_sample(self.tree)
        self.path = None
        self.selected = None
        self.dirty = False
        self.refresh()

    def save(self, path: Optional[Path] = None) -> Path:
        out = save_bom_file(self.tree, path or self.path)
        self.path = out
        self.dirty = False
        return out
