from decimal import Decimal

from core.services.bom_tree import BomTree
from core.services.cost_rollup import assembly_breakdown, shopping_list, subtree_costs


def _printer():
    tree = BomTree()
    root = tree.create_assembly("Printer")
    x = tree.create_assembly("X axis", root)
    y = tree.create_assembly("Y axis", root)
    tree.create_part({"name": "Motor", "sku": "NEMA17", "cost": "12.50", "supplier": "StepperOnline"}, x)
    tree.create_part({"name": "Belt", "sku": "GT2-6", "cost": "3.20", "quantity": 2}, x)
    tree.create_part({"name": "Stepper motor", "sku": "nema17", "cost": "12.50", "supplier": "StepperOnline"}, y)
    tree.create_part({"name": "Bolt M3", "cost": "0.10", "quantity": 20}, root)
    return tree, root, x, y


def test_subtree_costs_match_per_node_calculation():
    tree, root, x, y = _printer()
    costs = subtree_costs(tree.root)

    for node in tree.iter_nodes():
        assert costs[node.id] == tree.calculate_total_cost(node)
    assert costs[root.id] == Decimal("33.40")
    assert costs[x.id] == Decimal("18.90")


def test_subtree_costs_empty():
    assert subtree_costs(None) == {}


def test_shopping_list_aggregates_by_sku_and_supplier():
    tree, *_ = _printer()
    lines = shopping_list(tree)

    assert [ln.key for ln in lines] == ["NEMA17", "GT2-6", "BOLT M3"]
    motor = lines[0]
    assert motor.quantity == 2
    assert motor.total == Decimal("25.00")
    assert motor.name == "Motor"
    assert sum((ln.total for ln in lines), Decimal("0")) == tree.calculate_total_cost()


def test_assembly_breakdown_depths():
    tree, root, x, y = _printer()
    rows = assembly_breakdown(tree)
    assert [(a.name, depth) for a, depth, _ in rows] == [("Printer", 0), ("X axis", 1), ("Y axis", 1)]
    assert rows[2][2] == Decimal("12.50")
