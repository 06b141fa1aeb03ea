# core/parsers/bom_xml.py
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from lxml import etree as ET

from core.domain.models import (
    FALLBACK_ASSEMBLY_NAME,
    FALLBACK_PART_NAME,
    ROOT_ASSEMBLY_NAME,
    Assembly,
    Node,
    Part,
    coerce_cost,
    coerce_quantity,
    strip_xml_illegal,
)

_LOG = logging.getLogger(__name__)
_DEBUG_DIAG = os.getenv("BOM_DEBUG_DIAGNOSTICS", "0").strip() in {"1", "true", "True"}


def _indent_unit() -> str:
    raw = (os.getenv("BOM_XML_INDENT", "") or "").strip()
    try:
        n = int(raw) if raw else 2
    except ValueError:
        n = 2
    return " " * max(0, n)


INDENT = _indent_unit()
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
EMPTY_BOM = "<bom></bom>"
_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


class BomParseError(ValueError):
    """XML non ben formato oppure senza elemento radice <bom>."""


# =========================
# Serialization
# =========================

def escape_xml(value: object) -> str:
    if value is None:
        return ""
    return (
        strip_xml_illegal(str(value))
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _fmt_cost(cost: Decimal) -> str:
    # niente notazione scientifica in output (1E+2 -> 100)
    s = format(cost, "f")
    return s if s else "0"


def _render_part(part: Part, indent: str, out: List[str]) -> None:
    inner = indent + INDENT
    out.append(f"{indent}<part>\n")
    out.append(f"{inner}<name>{escape_xml(part.name)}</name>\n")
    if part.sku:
        out.append(f"{inner}<sku>{escape_xml(part.sku)}</sku>\n")
    out.append(f"{inner}<quantity>{part.quantity or 1}</quantity>\n")
    out.append(f"{inner}<cost>{_fmt_cost(part.cost or Decimal(0))}</cost>\n")
    if part.supplier:
        out.append(f"{inner}<supplier>{escape_xml(part.supplier)}</supplier>\n")
    if part.description:
        out.append(f"{inner}<description>{escape_xml(part.description)}</description>\n")
    if part.compatibility:
        out.append(f"{inner}<compatibility>\n")
        for rule in part.compatibility:
            out.append(f"{inner}{INDENT}<rule>{escape_xml(rule)}</rule>\n")
        out.append(f"{inner}</compatibility>\n")
    out.append(f"{indent}</part>\n")


def _render_node(node: Node, indent: str, out: List[str]) -> None:
    if isinstance(node, Part):
        _render_part(node, indent, out)
        return
    if not isinstance(node, Assembly):
        raise TypeError(f"BOM node non supportato: {type(node)!r}")

    out.append(f"{indent}<assembly>\n")
    out.append(f"{indent}{INDENT}<name>{escape_xml(node.name)}</name>\n")
    for child in node.children:
        _render_node(child, indent + INDENT, out)
    out.append(f"{indent}</assembly>\n")


def render_bom_xml(root: Optional[Node]) -> str:
    """
    Fragment XML del tree (senza dichiarazione XML e senza <bom>).
    Tree vuoto -> "<bom></bom>".
    """
    if root is None:
        return EMPTY_BOM
    out: List[str] = []
    _render_node(root, "", out)
    return "".join(out)


def wrap_bom_document(fragment: str) -> str:
    """Documento completo: dichiarazione + <bom> wrapper (se il fragment non lo ha già)."""
    body = (fragment or "").strip()
    if body.startswith("<bom"):
        return f"{XML_DECLARATION}\n{body}\n"
    body_nl = f"{body}\n" if body else ""
    return f"{XML_DECLARATION}\n<bom>\n{body_nl}</bom>\n"


# =========================
# Parsing
# =========================

@dataclass
class ParsedBom:
    """Tree staccato dal modello + prossimo valore del contatore id."""
    root: Optional[Node]
    next_id: int


class _IdAllocator:
    def __init__(self) -> None:
        self.value = 0

    def next(self, prefix: str) -> str:
        v = self.value
        self.value += 1
        return f"{prefix}-{v}"


def _children_named(el, tag: str) -> List:
    # solo figli diretti (no discendenti), commenti/PI esclusi
    return [c for c in el if isinstance(c.tag, str) and c.tag == tag]


def _child_text(el, tag: str) -> str:
    for c in _children_named(el, tag):
        return c.text or ""
    return ""


def _parse_part(el, ids: _IdAllocator) -> Part:
    rules: List[str] = []
    for comp in _children_named(el, "compatibility"):
        for r in _children_named(comp, "rule"):
            if r.text:
                rules.append(r.text)

    qty_text = _child_text(el, "quantity")
    cost_text = _child_text(el, "cost")

    return Part(
        id=ids.next("part"),
        name=_child_text(el, "name") or FALLBACK_PART_NAME,
        sku=_child_text(el, "sku"),
        quantity=coerce_quantity(qty_text or "1"),
        cost=coerce_cost(cost_text or "0"),
        supplier=_child_text(el, "supplier"),
        description=_child_text(el, "description"),
        compatibility=rules,
    )


def _parse_assembly(el, ids: _IdAllocator) -> Assembly:
    asm = Assembly(id=ids.next("assembly"), name=_child_text(el, "name") or FALLBACK_ASSEMBLY_NAME)
    # assemblies prima, poi parts (ciascun tipo in ordine documento)
    for child_el in _children_named(el, "assembly"):
        asm.append_child(_parse_assembly(child_el, ids))
    for child_el in _children_named(el, "part"):
        asm.append_child(_parse_part(child_el, ids))
    return asm


def _load_root_element(xml_text: Union[str, bytes]):
    if xml_text is None:
        raise BomParseError("Invalid XML: empty document")

    # str: testo già decodificato, la dichiarazione (ed il suo encoding) non vale più
    if isinstance(xml_text, str):
        data = _DECLARATION_RE.sub("", xml_text, count=1).encode("utf-8")
    else:
        data = bytes(xml_text)
    if not data.strip():
        raise BomParseError("Invalid XML: empty document")

    parser = ET.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)
    try:
        doc_root = ET.fromstring(data, parser=parser)
    except ET.XMLSyntaxError as e:
        raise BomParseError(f"Invalid XML: {e}") from e

    if doc_root.tag != "bom":
        raise BomParseError("No <bom> root element found")
    return doc_root


def parse_bom_xml(xml_text: Union[str, bytes]) -> ParsedBom:
    """
    Parsing XML -> tree staccato.

    Regola top-level:
      - esattamente 1 <assembly> e 0 <part> sotto <bom> => quella assembly è la root
      - altrimenti => root sintetica "Root Assembly" con assemblies poi parts
      - <bom> vuoto => root None
    """
    bom_el = _load_root_element(xml_text)

    ids = _IdAllocator()
    top_asm = _children_named(bom_el, "assembly")
    top_parts = _children_named(bom_el, "part")

    root: Optional[Node] = None
    synthetic = False
    if len(top_asm) == 1 and not top_parts:
        root = _parse_assembly(top_asm[0], ids)
    elif top_asm or top_parts:
        synthetic = True
        root = Assembly(id=ids.next("assembly"), name=ROOT_ASSEMBLY_NAME)
        for el in top_asm:
            root.append_child(_parse_assembly(el, ids))
        for el in top_parts:
            root.append_child(_parse_part(el, ids))

    if _DEBUG_DIAG:
        _LOG.debug(
            "[diag] parse_bom_xml top_assemblies=%s top_parts=%s synthetic_root=%s ids_allocated=%s",
            len(top_asm),
            len(top_parts),
            synthetic,
            ids.value,
        )
    return ParsedBom(root=root, next_id=ids.value)
