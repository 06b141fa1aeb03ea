from decimal import Decimal

import pytest

from core.parsers.bom_xml import BomParseError
from core.services.bom_tree import BomTree
from core.use_case.bom_file import DEFAULT_FILENAME, is_bom_filename, load_bom_file, load_sample, save_bom_file


def test_sample_bom_loads_with_expected_totals():
    tree = load_sample(BomTree())

    assert tree.root.name == "3D Printer Hotend"
    # assemblies prima delle parts
    assert [c.name for c in tree.root.children] == ["Nozzle Assembly", "Heater Cartridge 40W", "Thermistor 100K"]
    assert len(tree.get_all_parts()) == 4
    assert tree.calculate_total_cost() == Decimal("41.47")

    nozzle = tree.get_all_parts()[0]
    assert nozzle.name == "Nozzle 0.4mm"
    assert nozzle.compatibility == ["M6 threads", "Compatible with V6 hotend"]


def test_save_then_load_round_trip(tmp_path):
    tree = load_sample(BomTree())
    out = save_bom_file(tree, tmp_path / "hotend.bom.xml")

    text = out.read_text(encoding="utf-8")
    assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<bom>\n<assembly>')

    loaded = load_bom_file(BomTree(), out)
    assert loaded.calculate_total_cost() == Decimal("41.47")
    assert [p.name for p in loaded.get_all_parts()] == [p.name for p in tree.get_all_parts()]


def test_save_into_directory_uses_default_filename(tmp_path):
    tree = BomTree()
    tree.create_part({"name": "Bolt"})
    out = save_bom_file(tree, tmp_path)
    assert out.name == DEFAULT_FILENAME
    assert out.is_file()


def test_save_empty_tree_is_refused(tmp_path):
    with pytest.raises(ValueError):
        save_bom_file(BomTree(), tmp_path / "x.bom.xml")


def test_load_checks_extension_and_existence(tmp_path):
    tree = BomTree()
    with pytest.raises(ValueError):
        load_bom_file(tree, tmp_path / "bom.json")
    with pytest.raises(FileNotFoundError):
        load_bom_file(tree, tmp_path / "missing.bom.xml")


def test_load_malformed_file_keeps_tree(tmp_path):
    bad = tmp_path / "broken.xml"
    bad.write_text("<bom><assembly>", encoding="utf-8")

    tree = load_sample(BomTree())
    root = tree.root
    with pytest.raises(BomParseError):
        load_bom_file(tree, bad)
    assert tree.root is root


def test_is_bom_filename():
    assert is_bom_filename("a.bom.xml")
    assert is_bom_filename("A.XML")
    assert not is_bom_filename("a.xslt")
