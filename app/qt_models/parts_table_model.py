# app/qt_models/parts_table_model.py
from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from app.state.bom_context import BomContext
from core.services.cost_rollup import ShoppingLine


COLUMNS = ["SKU", "Name", "Supplier", "QTY total", "Unit cost", "Line total"]


class PartsTableModel(QAbstractTableModel):
    """Shopping list: una riga per (SKU/nome, fornitore)."""

    def __init__(self, ctx: Optional[BomContext] = None) -> None:
        super().__init__()
        self._ctx = ctx
        self._rows: List[ShoppingLine] = [] if ctx is None else list(ctx.lines)

    def set_context(self, ctx: BomContext) -> None:
        self.beginResetModel()
        self._ctx = ctx
        self._rows = list(ctx.lines)
        self.endResetModel()

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(COLUMNS)

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole):
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal:
            return COLUMNS[section]
        return str(section + 1)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):
        if not index.isValid() or self._ctx is None:
            return None
        if role == Qt.TextAlignmentRole and index.column() >= 3:
            return Qt.AlignRight | Qt.AlignVCenter
        if role not in (Qt.DisplayRole, Qt.ToolTipRole):
            return None

        ln = self._rows[index.row()]
        vals = [
            ln.sku,
            ln.name,
            ln.supplier,
            str(ln.quantity),
            f"{ln.unit_cost:.2f}",
            f"{ln.total:.2f}",
        ]
        return vals[index.column()]

    def total_text(self) -> str:
        if self._ctx is None:
            return "0.00"
        return f"{self._ctx.total_cost:.2f}"
