# app/windows/main_window.py
from __future__ import annotations

from pathlib import Path
import logging
import sys

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QSplitter, QTreeView, QTableView, QTabWidget,
    QVBoxLayout, QToolBar, QLabel, QAbstractItemView, QPushButton, QHBoxLayout,
    QFileDialog, QMessageBox
)
from PySide6.QtGui import QStandardItemModel, QStandardItem
from PySide6.QtCore import Qt

from app.state.bom_context import BomContext
from app.qt_models.issues_table_model import IssuesTableModel
from app.qt_models.parts_table_model import PartsTableModel
from core.domain.models import Assembly, Node
from core.parsers.bom_xml import BomParseError


NODE_ID_ROLE = Qt.UserRole + 1

_LOG = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, ctx: BomContext | None = None) -> None:
        super().__init__()
        self.setWindowTitle("BOM Forge")

        self._ctx = ctx or BomContext()

        # Toolbar top
        tb = QToolBar("Main")
        self.addToolBar(tb)

        top = QWidget()
        top_lay = QHBoxLayout(top)
        top_lay.setContentsMargins(0, 0, 0, 0)

        self.btn_open = QPushButton("Apri BOM…")
        self.btn_sample = QPushButton("Esempio")
        self.btn_save = QPushButton("Salva")

        self.btn_open.clicked.connect(self._open_dialog)
        self.btn_sample.clicked.connect(self._open_sample)
        self.btn_save.clicked.connect(self._save_dialog)

        top_lay.addWidget(self.btn_open)
        top_lay.addWidget(self.btn_sample)
        top_lay.addWidget(self.btn_save)
        top_lay.addStretch(1)
        tb.addWidget(top)

        self._status = QLabel("Pronto.")
        self.statusBar().addWidget(self._status, 1)

        # Left: BOM tree (nome + costo sottoalbero)
        self.tree = QTreeView()
        self._tree_model = QStandardItemModel()
        self._tree_model.setHorizontalHeaderLabels(["BOM", "Cost"])
        self.tree.setModel(self._tree_model)
        self.tree.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.tree.setUniformRowHeights(True)

        # Right: Tabs
        self.tabs = QTabWidget()

        self.parts_table = QTableView()
        self.parts_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._parts_model = PartsTableModel()
        self.parts_table.setModel(self._parts_model)
        self.tabs.addTab(self.parts_table, "Shopping list")

        self.issues_table = QTableView()
        self.issues_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._issues_model = IssuesTableModel()
        self.issues_table.setModel(self._issues_model)
        self.tabs.addTab(self.issues_table, "Validation")

        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.tree)
        splitter.addWidget(self.tabs)
        splitter.setStretchFactor(0, 2)
        splitter.setStretchFactor(1, 3)

        root = QWidget()
        lay = QVBoxLayout(root)
        lay.addWidget(splitter)
        self.setCentralWidget(root)

        self.tree.selectionModel().selectionChanged.connect(self._on_tree_selection_changed)

        self.set_context(self._ctx)

    @property
    def context(self) -> BomContext:
        return self._ctx

    @property
    def tree_model(self) -> QStandardItemModel:
        return self._tree_model

    @property
    def status_text(self) -> str:
        return self._status.text()

    # ---------------- context -> models ----------------
    def set_context(self, ctx: BomContext) -> None:
        self._ctx = ctx
        self._parts_model.set_context(ctx)
        self._issues_model.set_context(ctx)
        self._rebuild_tree()

        n_warn = len(ctx.warnings)
        suffix = f" | warnings={n_warn}" if n_warn else ""
        self._status.setText(f"Total: {ctx.total_cost:.2f} | parts={len(ctx.tree.get_all_parts())}{suffix}")

    def _rebuild_tree(self) -> None:
        self._tree_model.clear()
        self._tree_model.setHorizontalHeaderLabels(["BOM", "Cost"])

        root = self._ctx.tree.root
        if root is None:
            return

        # iterativo, costi già calcolati dal context (una passata)
        stack: list[tuple[QStandardItem, Node]] = []
        row = self._make_row(root)
        self._tree_model.appendRow(row)
        stack.append((row[0], root))
        while stack:
            qitem, node = stack.pop()
            if not isinstance(node, Assembly):
                continue
            for child in node.children:
                child_row = self._make_row(child)
                qitem.appendRow(child_row)
                stack.append((child_row[0], child))

        self.tree.expandToDepth(1)

    def _make_row(self, node: Node) -> list[QStandardItem]:
        label = node.name if isinstance(node, Assembly) else f"{node.name} x{node.quantity}"
        name_item = QStandardItem(label)
        name_item.setData(node.id, NODE_ID_ROLE)
        name_item.setEditable(False)
        cost_item = QStandardItem(f"{self._ctx.cost_for(node):.2f}")
        cost_item.setEditable(False)
        return [name_item, cost_item]

    def _on_tree_selection_changed(self, *_args) -> None:
        idx = self.tree.currentIndex()
        if not idx.isValid():
            return
        item_id = idx.siblingAtColumn(0).data(NODE_ID_ROLE) or ""
        self._ctx.select(item_id)

    # ---------------- UI actions ----------------
    def _open_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Apri BOM", "", "BOM XML (*.bom.xml *.xml)")
        if path:
            self.open_path(Path(path))

    def open_path(self, path: Path) -> bool:
        try:
            self._ctx.open(path)
        except (BomParseError, ValueError, FileNotFoundError) as e:
            _LOG.warning("BOM load failed: %s", e)
            self._status.setText(f"Errore: {e}")
            QMessageBox.critical(self, "Caricamento fallito", str(e))
            return False
        self.set_context(self._ctx)
        return True

    def _open_sample(self) -> None:
        self._ctx.open_sample()
        self.set_context(self._ctx)

    def _save_dialog(self) -> None:
        if self._ctx.tree.is_empty:
            self._status.setText("No BOM to save. Add some parts first!")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Salva BOM", str(self._ctx.path or "bomforge.bom.xml"), "BOM XML (*.bom.xml)")
        if not path:
            return
        out = self._ctx.save(Path(path))
        self._status.setText(f"Salvato: {out}")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = QApplication.instance() or QApplication(sys.argv)
    win = MainWindow()
    win.resize(1100, 700)
    win.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
