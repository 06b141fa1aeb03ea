import logging
from decimal import Decimal

from core.services.bom_tree import BomTree
from core.services.bom_validation import validate_bom


def test_valid_tree_has_no_warnings():
    tree = BomTree()
    root = tree.create_assembly("Printer")
    tree.create_part({"name": "Bolt", "quantity": 10, "cost": "0.05"}, root)
    assert validate_bom(tree) == []


def test_empty_tree_has_no_warnings():
    assert validate_bom(BomTree()) == []


def test_directly_assigned_bad_fields_are_reported():
    tree = BomTree()
    root = tree.create_assembly("Printer")
    bolt = tree.create_part({"name": "Bolt"}, root)
    nameless = tree.create_part({"name": "x"}, root)

    bolt.quantity = 0
    bolt.cost = Decimal("-1")
    nameless.name = "  "
    root.name = ""

    warnings = validate_bom(tree)
    messages = [w.message for w in warnings]

    assert messages == [
        'Part "Bolt" has invalid quantity (must be >= 1)',
        'Part "Bolt" has invalid cost (must be >= 0)',
        "Part missing required field: name",
        "Assembly missing required field: name",
    ]
    assert [w.item_id for w in warnings] == [bolt.id, bolt.id, nameless.id, root.id]
    assert {w.code for w in warnings} == {
        "PART_QTY_INVALID",
        "PART_COST_INVALID",
        "PART_NAME_MISSING",
        "ASSEMBLY_NAME_MISSING",
    }


def test_nan_cost_and_non_int_quantity_are_invalid():
    tree = BomTree()
    p = tree.create_part({"name": "Spring"})
    p.cost = float("nan")
    p.quantity = "3"

    codes = [w.code for w in validate_bom(tree)]
    assert codes == ["PART_QTY_INVALID", "PART_COST_INVALID"]


def test_validation_does_not_mutate():
    tree = BomTree()
    p = tree.create_part({"name": "Spring"})
    p.quantity = -2
    validate_bom(tree)
    assert p.quantity == -2


def test_validation_is_quiet_at_info_level(caplog):
    tree = BomTree()
    part = tree.create_part({"name": "Bolt"})
    part.quantity = 0

    with caplog.at_level(logging.INFO):
        warnings = validate_bom(tree)

    assert len(warnings) == 1
    assert [r for r in caplog.records if r.levelno >= logging.INFO] == []
