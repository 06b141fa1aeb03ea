# app/qt_models/issues_table_model.py
from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from app.state.bom_context import BomContext
from core.domain.models import ValidationWarning


COLUMNS = ["Level", "Code", "Message", "Item"]


class IssuesTableModel(QAbstractTableModel):
    def __init__(self) -> None:
        super().__init__()
        self._issues: List[ValidationWarning] = []

    def set_context(self, ctx: Optional[BomContext]) -> None:
        self.beginResetModel()
        self._issues = [] if ctx is None else list(ctx.warnings or [])
        self.endResetModel()

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._issues)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(COLUMNS)

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole):
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal:
            return COLUMNS[section]
        return str(section + 1)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):
        if not index.isValid():
            return None
        if role not in (Qt.DisplayRole, Qt.ToolTipRole):
            return None

        w = self._issues[index.row()]
        vals = [w.level.value, w.code, w.message, w.item_id]
        return vals[index.column()]

    def item_id_at_row(self, row: int) -> str:
        if row < 0 or row >= len(self._issues):
            return ""
        return self._issues[row].item_id
