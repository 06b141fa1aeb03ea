# core/services/bom_tree.py
from __future__ import annotations

import logging
import os
from decimal import Decimal
from typing import Any, Iterator, List, Mapping, Optional, Union

from core.domain.models import (
    DEFAULT_ASSEMBLY_NAME,
    DEFAULT_PART_NAME,
    FALLBACK_ASSEMBLY_NAME,
    FALLBACK_PART_NAME,
    ROOT_ASSEMBLY_NAME,
    ZERO,
    Assembly,
    Node,
    Part,
    clean_text,
    coerce_cost,
    coerce_quantity,
    coerce_rules,
)
from core.parsers.bom_xml import parse_bom_xml, render_bom_xml

_LOG = logging.getLogger(__name__)
_DEBUG_DIAG = os.getenv("BOM_DEBUG_DIAGNOSTICS", "0").strip() in {"1", "true", "True"}

_TEXT_FIELDS = ("sku", "supplier", "description")


def iter_preorder(root: Optional[Node]) -> Iterator[Node]:
    """Visita pre-order (nodo, poi figli in ordine)."""
    if root is None:
        return
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Assembly):
            stack.extend(reversed(node.children))


def _require_assembly(parent: Any) -> Optional[Assembly]:
    if parent is None or isinstance(parent, Assembly):
        return parent
    raise TypeError(f"parent deve essere una Assembly, non {type(parent).__name__}")


class BomTree:
    """
    In-memory BOM tree: una sola root (o nessuna) + contatore id.

    Nodes are created only through the factory methods; structural changes
    (create/delete/move) always update both the parent's ``children`` and the
    child's parent link. No I/O here: XML text goes in and out as strings.
    """

    def __init__(self) -> None:
        self._root: Optional[Node] = None
        self._next_id = 0

    # ------------------------
    # State
    # ------------------------
    @property
    def root(self) -> Optional[Node]:
        return self._root

    @property
    def is_empty(self) -> bool:
        return self._root is None

    def _new_id(self, prefix: str) -> str:
        v = self._next_id
        self._next_id += 1
        return f"{prefix}-{v}"

    # ------------------------
    # Factories
    # ------------------------
    def create_assembly(self, name: Optional[str] = None, parent: Optional[Assembly] = None) -> Assembly:
        parent = _require_assembly(parent)
        asm = Assembly(id=self._new_id("assembly"), name=clean_text(name) or DEFAULT_ASSEMBLY_NAME)

        if parent is not None:
            parent.append_child(asm)
        else:
            if self._root is not None and _DEBUG_DIAG:
                _LOG.debug("[diag] create_assembly replaces root %s with %s", self._root.id, asm.id)
            self._root = asm
        return asm

    def create_part(self, data: Optional[Mapping[str, Any]] = None, parent: Optional[Assembly] = None) -> Part:
        parent = _require_assembly(parent)
        data = data or {}

        part = Part(
            id=self._new_id("part"),
            name=clean_text(data.get("name")) or DEFAULT_PART_NAME,
            sku=clean_text(data.get("sku")),
            quantity=coerce_quantity(data.get("quantity")),
            cost=coerce_cost(data.get("cost")),
            supplier=clean_text(data.get("supplier")),
            description=clean_text(data.get("description")),
            compatibility=coerce_rules(data.get("compatibility")),
        )

        if parent is None:
            parent = self._ensure_root_assembly()
        parent.append_child(part)
        return part

    def _ensure_root_assembly(self) -> Assembly:
        root = self._root
        if isinstance(root, Assembly):
            return root

        new_root = Assembly(id=self._new_id("assembly"), name=ROOT_ASSEMBLY_NAME)
        if root is not None:
            # root degenere (Part): viene adottata dalla nuova root
            new_root.append_child(root)
        self._root = new_root
        return new_root

    # ------------------------
    # Edits (coercion, never raise on bad field input)
    # ------------------------
    def update_part(self, part: Part, data: Mapping[str, Any]) -> Part:
        if "name" in data:
            part.name = clean_text(data["name"]) or FALLBACK_PART_NAME
        for key in _TEXT_FIELDS:
            if key in data:
                setattr(part, key, clean_text(data[key]))
        if "quantity" in data:
            part.quantity = coerce_quantity(data["quantity"])
        if "cost" in data:
            part.cost = coerce_cost(data["cost"])
        if "compatibility" in data:
            part.compatibility = coerce_rules(data["compatibility"])
        return part

    def rename_assembly(self, assembly: Assembly, name: Optional[str]) -> Assembly:
        assembly.name = clean_text(name) or FALLBACK_ASSEMBLY_NAME
        return assembly

    # ------------------------
    # Structure
    # ------------------------
    def delete_item(self, item: Optional[Node]) -> bool:
        """Rimuove il nodo (e implicitamente il suo sottoalbero)."""
        if item is None:
            return False

        parent = item.parent
        if parent is not None:
            return parent.remove_child(item)
        if item is self._root:
            self._root = None
            return True
        return False

    def move_item(self, item: Optional[Node], new_parent: Optional[Assembly]) -> bool:
        """
        Sposta ``item`` come ultimo figlio di ``new_parent``.

        - new_parent Part / item stesso / dentro il sottoalbero di item -> no-op
        - new_parent None -> item staccato (non diventa root); la root resta root
        - la root spostata sotto un altro nodo -> il modello resta senza root
        """
        if item is None:
            return False

        if new_parent is not None:
            if not isinstance(new_parent, Assembly):
                _LOG.warning("move_item: target %s is not an assembly, ignored", getattr(new_parent, "id", new_parent))
                return False
            if isinstance(item, Assembly) and item.contains(new_parent):
                _LOG.warning("move_item: %s cannot be moved inside its own subtree", item.id)
                return False

        if item is self._root:
            if new_parent is None:
                return False
            self._root = None

        old_parent = item.parent
        if old_parent is None and new_parent is None:
            return False
        if old_parent is not None:
            old_parent.remove_child(item)

        if new_parent is not None:
            new_parent.append_child(item)

        if _DEBUG_DIAG:
            _LOG.debug(
                "[diag] move_item %s: %s -> %s",
                item.id,
                "-" if old_parent is None else old_parent.id,
                "-" if new_parent is None else new_parent.id,
            )
        return True

    # ------------------------
    # Queries
    # ------------------------
    def calculate_total_cost(self, item: Optional[Node] = None) -> Decimal:
        target = item if item is not None else self._root
        if target is None:
            return ZERO
        if isinstance(target, Part):
            return target.line_total

        total = ZERO
        for child in target.children:
            total += self.calculate_total_cost(child)
        return total

    def iter_nodes(self) -> Iterator[Node]:
        return iter_preorder(self._root)

    def get_all_parts(self) -> List[Part]:
        return [n for n in self.iter_nodes() if isinstance(n, Part)]

    def get_all_assemblies(self) -> List[Assembly]:
        return [n for n in self.iter_nodes() if isinstance(n, Assembly)]

    def find_item_by_id(self, item_id: str) -> Optional[Node]:
        if not item_id:
            return None
        for node in self.iter_nodes():
            if node.id == item_id:
                return node
        return None

    # ------------------------
    # XML
    # ------------------------
    def to_xml(self) -> str:
        return render_bom_xml(self._root)

    def from_xml(self, xml_text: Union[str, bytes]) -> bool:
        """
        Ricostruisce il tree dal testo XML.
        Il parse avviene su un tree staccato: se fallisce (BomParseError) il
        modello corrente resta invariato.
        """
        parsed = parse_bom_xml(xml_text)

        self._root = parsed.root
        self._next_id = parsed.next_id

        if _DEBUG_DIAG:
            _LOG.debug(
                "[diag] from_xml loaded parts=%s assemblies=%s next_id=%s",
                len(self.get_all_parts()),
                len(self.get_all_assemblies()),
                self._next_id,
            )
        return True
