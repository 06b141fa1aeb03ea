# core/use_case/bom_file.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from core.parsers.bom_xml import wrap_bom_document
from core.services.bom_tree import BomTree

_LOG = logging.getLogger(__name__)

DEFAULT_FILENAME = "bomforge.bom.xml"
BOM_SUFFIXES = (".bom.xml", ".xml")

SAMPLE_BOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<bom>
  <assembly>
    <name>3D Printer Hotend</name>
    <part>
      <name>Heater Cartridge 40W</name>
      <sku>E3D-HT-40W</sku>
      <quantity>1</quantity>
      <cost>12.99</cost>
      <supplier>E3D Online</supplier>
      <description>40W 24V heater cartridge</description>
    </part>
    <part>
      <name>Thermistor 100K</name>
      <sku>E3D-TH-100K</sku>
      <quantity>1</quantity>
      <cost>3.50</cost>
      <supplier>E3D Online</supplier>
      <description>100K NTC thermistor</description>
    </part>
    <assembly>
      <name>Nozzle Assembly</name>
      <part>
        <name>Nozzle 0.4mm</name>
        <sku>E3D-NZ-04</sku>
        <quantity>1</quantity>
        <cost>8.99</cost>
        <supplier>E3D Online</supplier>
        <compatibility>
          <rule>M6 threads</rule>
          <rule>Compatible with V6 hotend</rule>
        </compatibility>
      </part>
      <part>
        <name>Heatbreak</name>
        <sku>E3D-HB-V6</sku>
        <quantity>1</quantity>
        <cost>15.99</cost>
        <supplier>E3D Online</supplier>
      </part>
    </assembly>
  </assembly>
</bom>
"""


def is_bom_filename(path: Union[str, Path]) -> bool:
    name = Path(path).name.lower()
    return any(name.endswith(s) for s in BOM_SUFFIXES)


def load_bom_file(tree: BomTree, path: Union[str, Path]) -> BomTree:
    """
    Carica un file .xml / .bom.xml nel tree.
    Errori: ValueError (estensione), FileNotFoundError, BomParseError.
    """
    p = Path(path).expanduser()
    if not is_bom_filename(p):
        raise ValueError(f"Please select a valid XML file (.xml or .bom.xml): {p.name}")
    if not p.is_file():
        raise FileNotFoundError(str(p))

    data = p.read_bytes()
    tree.from_xml(data)
    _LOG.info("BOM loaded: %s (parts=%s)", p.name, len(tree.get_all_parts()))
    return tree


def save_bom_file(tree: BomTree, path: Union[str, Path, None] = None) -> Path:
    """Scrive il documento completo (dichiarazione + <bom>) in UTF-8."""
    if tree.is_empty:
        raise ValueError("No BOM to save. Add some parts first!")

    p = Path(path).expanduser() if path else Path(DEFAULT_FILENAME)
    if p.is_dir():
        p = p / DEFAULT_FILENAME

    p.write_text(wrap_bom_document(tree.to_xml()), encoding="utf-8")
    _LOG.info("BOM saved: %s", p)
    return p


def load_sample(tree: BomTree) -> BomTree:
    tree.from_xml(SAMPLE_BOM_XML)
    return tree
