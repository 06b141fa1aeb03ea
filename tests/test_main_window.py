import os

import pytest

pytest.importorskip("PySide6")
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
from PySide6.QtWidgets import QApplication

from app.state.bom_context import BomContext
from app.windows.main_window import NODE_ID_ROLE, MainWindow


@pytest.fixture(scope="module")
def qapp():
    return QApplication.instance() or QApplication([])


def test_window_starts_empty(qapp):
    win = MainWindow()
    assert win.tree_model.rowCount() == 0
    assert win.parts_table.model().rowCount() == 0
    assert win.issues_table.model().rowCount() == 0
    assert win.status_text.startswith("Total: 0.00")


def test_window_shows_sample_tree_and_tables(qapp):
    ctx = BomContext()
    ctx.open_sample()
    win = MainWindow(ctx)

    model = win.tree_model
    assert model.rowCount() == 1
    root = model.item(0, 0)
    assert root.text() == "3D Printer Hotend"
    assert model.item(0, 1).text() == "41.47"
    assert root.data(NODE_ID_ROLE) == ctx.tree.root.id

    first_child = root.child(0, 0)
    assert first_child.text() == "Nozzle Assembly"
    assert root.child(0, 1).text() == "24.98"

    assert win.parts_table.model().rowCount() == 4
    assert win.issues_table.model().rowCount() == 0
    assert win.status_text == "Total: 41.47 | parts=4"


def test_window_reflects_context_changes(qapp):
    ctx = BomContext()
    win = MainWindow(ctx)

    part = ctx.add_part({"name": "Bolt", "cost": "0.10", "quantity": 5})
    part.quantity = 0
    ctx.refresh()
    win.set_context(ctx)

    assert win.tree_model.item(0, 0).child(0, 0).text() == "Bolt x0"
    assert win.issues_table.model().rowCount() == 1
    assert win.status_text.endswith("| warnings=1")


def test_open_path_loads_file_and_reports_errors(qapp, tmp_path, monkeypatch):
    from PySide6.QtWidgets import QMessageBox

    shown = []
    monkeypatch.setattr(QMessageBox, "critical", lambda *a, **k: shown.append(a))

    good = tmp_path / "kit.bom.xml"
    good.write_text("<bom><part><name>Fan</name><cost>3</cost><quantity>2</quantity></part></bom>", encoding="utf-8")
    win = MainWindow()
    assert win.open_path(good) is True
    assert win.context.path == good
    assert win.status_text == "Total: 6.00 | parts=1"

    bad = tmp_path / "broken.bom.xml"
    bad.write_text("<nope/>", encoding="utf-8")
    assert win.open_path(bad) is False
    assert len(shown) == 1
    assert win.status_text.startswith("Errore:")
    assert win.tree_model.item(0, 0).child(0, 0).text() == "Fan x2"
