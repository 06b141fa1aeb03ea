# core/domain/models.py
from __future__ import annotations

import math
import re
import weakref
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Union

# =========================
# Defaults
# =========================

DEFAULT_ASSEMBLY_NAME = "New Assembly"
DEFAULT_PART_NAME = "New Part"
ROOT_ASSEMBLY_NAME = "Root Assembly"

# nomi usati quando un campo arriva vuoto da edit / XML
FALLBACK_ASSEMBLY_NAME = "Assembly"
FALLBACK_PART_NAME = "Part"

ZERO = Decimal("0")


class NodeKind(str, Enum):
    ASSEMBLY = "assembly"
    PART = "part"


# =========================
# Coercion (permissive input)
# =========================

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")
_DEC_PREFIX_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def coerce_quantity(value: object) -> int:
    """
    Quantità sempre >= 1.
    - int/float -> troncato
    - stringhe "3", " 3 ", "3.7", "12pcs" -> intero iniziale
    - None / non numerico / < 1 -> 1
    """
    if value is None or isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value if value >= 1 else 1
    if isinstance(value, (float, Decimal)):
        try:
            if not math.isfinite(float(value)):
                return 1
        except (OverflowError, ValueError):
            return 1
        q = int(value)
        return q if q >= 1 else 1

    m = _INT_PREFIX_RE.match(str(value))
    if not m:
        return 1
    try:
        q = int(m.group(1))
    except ValueError:
        # oltre il limite di conversione int/str
        return 1
    return q if q >= 1 else 1


def coerce_cost(value: object) -> Decimal:
    """
    Costo sempre >= 0, come Decimal.
    float -> str -> Decimal per evitare artefatti binari (8.99 resta 8.99).
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return ZERO
        d = Decimal(str(value))
    else:
        m = _DEC_PREFIX_RE.match(str(value))
        if not m:
            return ZERO
        try:
            d = Decimal(m.group(1))
        except InvalidOperation:
            return ZERO

    if not d.is_finite() or d <= 0:
        return ZERO
    return d


_XML_ILLEGAL_RE = re.compile(r"[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def strip_xml_illegal(text: str) -> str:
    """Rimuove i caratteri non ammessi da XML 1.0 (es. controlli C0)."""
    return _XML_ILLEGAL_RE.sub("", text)


def clean_text(value: object) -> str:
    return "" if value is None else strip_xml_illegal(str(value)).strip()


def coerce_rules(value: object) -> List[str]:
    """Compatibility: stringa separata da virgole oppure sequenza di stringhe."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        try:
            items = list(value)
        except TypeError:
            items = [value]
    return [s for s in (clean_text(v) for v in items) if s]


# =========================
# Tree nodes
# =========================

@dataclass(eq=False)
class BomNode:
    """
    Base comune dei nodi.

    The parent link is a weak reference: the parent's ``children`` list is
    the only owning relationship. Equality is identity (eq=False), so list
    lookups never match a structurally identical copy.
    """
    id: str
    name: str
    _parent_ref: Optional[weakref.ReferenceType] = field(default=None, init=False, repr=False)

    kind = NodeKind.ASSEMBLY

    @property
    def parent(self) -> Optional["Assembly"]:
        return None if self._parent_ref is None else self._parent_ref()

    def _set_parent(self, parent: Optional["Assembly"]) -> None:
        self._parent_ref = None if parent is None else weakref.ref(parent)

    def depth(self) -> int:
        d = 0
        p = self.parent
        while p is not None:
            d += 1
            p = p.parent
        return d


@dataclass(eq=False)
class Assembly(BomNode):
    children: List["Node"] = field(default_factory=list)

    kind = NodeKind.ASSEMBLY

    def append_child(self, child: "Node") -> None:
        """Attach ``child`` as last child. Caller must have detached it first."""
        self.children.append(child)
        child._set_parent(self)

    def remove_child(self, child: "Node") -> bool:
        # identity, not ==
        for i, c in enumerate(self.children):
            if c is child:
                del self.children[i]
                child._set_parent(None)
                return True
        return False

    def contains(self, node: "Node") -> bool:
        """True if ``node`` is this assembly or lies in its subtree."""
        stack: List[Node] = [self]
        while stack:
            cur = stack.pop()
            if cur is node:
                return True
            if isinstance(cur, Assembly):
                stack.extend(cur.children)
        return False


@dataclass(eq=False)
class Part(BomNode):
    sku: str = ""
    quantity: int = 1
    cost: Decimal = ZERO
    supplier: str = ""
    description: str = ""
    compatibility: List[str] = field(default_factory=list)

    kind = NodeKind.PART

    @property
    def line_total(self) -> Decimal:
        return self.cost * self.quantity


Node = Union[Assembly, Part]


# =========================
# Validation
# =========================

class WarningLevel(str, Enum):
    WARNING = "WARNING"


@dataclass(frozen=True)
class ValidationWarning:
    """Segnalazione non bloccante prodotta dalla validazione."""
    code: str
    message: str
    item_id: str = ""
    level: WarningLevel = WarningLevel.WARNING
