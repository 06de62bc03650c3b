"""Qt table model backed by a LanguageTableEditor.

Shows the editor's current page: column 0 is the key, column ``i + 1`` is
language ``i`` of the working matrix whatever search or sort is active.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from PySide6.QtCore import QAbstractTableModel, QModelIndex, QObject, QSize, Qt, QTimer

from langtable import config
from langtable.markup import text_content
from langtable.search import PendingSearch, SearchDebouncer
from langtable.view import SortDirection, View

if TYPE_CHECKING:
    from langtable.app import LanguageTableEditor

# Role carrying the raw markup of a value cell
MarkupRole = Qt.UserRole + 1
CollapsedRole = Qt.UserRole + 2

_SORT_ARROWS = {SortDirection.ASC: "▲", SortDirection.DESC: "▼", None: "⇅"}


class MatrixTableModel(QAbstractTableModel):
    """Key column plus one column per language."""

    KEY_HEADER = "Keys"

    def __init__(self, editor: LanguageTableEditor | None = None, parent=None):
        super().__init__(parent)
        self._editor = editor
        self._view: View | None = editor.get_view() if editor is not None else None

    # ── Public API ──────────────────────────────────────────────

    @property
    def editor(self):
        return self._editor

    @property
    def view(self) -> View | None:
        return self._view

    def set_editor(self, editor):
        """Replace the underlying editor and refresh the view."""
        self.beginResetModel()
        self._editor = editor
        self._view = editor.get_view() if editor is not None else None
        self.endResetModel()

    def refresh(self) -> None:
        """Re-derive the view after any editor state change."""
        self.beginResetModel()
        self._view = self._editor.get_view() if self._editor is not None else None
        self.endResetModel()

    def key_at(self, row: int) -> str:
        return self._view.rows[row].key

    # ── QAbstractTableModel overrides ───────────────────────────

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid() or self._view is None:
            return 0
        return len(self._view.rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid() or self._editor is None:
            return 0
        return 1 + self._editor.matrix.column_count()

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:
        if not index.isValid() or self._view is None:
            return None
        row = self._view.rows[index.row()]
        if index.column() == 0:
            if role in (Qt.DisplayRole, Qt.ToolTipRole):
                return row.key
            return None
        cell = row.cells[index.column() - 1]
        if role == Qt.DisplayRole:
            return "" if cell.collapsed else text_content(cell.value)
        if role == Qt.ToolTipRole:
            return text_content(cell.value)
        if role == MarkupRole:
            return cell.value
        if role == CollapsedRole:
            return cell.collapsed
        return None

    def headerData(
        self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole
    ) -> Any:
        if role == Qt.SizeHintRole:
            return self._collapsed_size_hint(section, orientation)
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Vertical:
            if self._view is None:
                return None
            return str((self._view.page_number - 1) * self._view.page_size + section + 1)
        if section == 0:
            return self.KEY_HEADER
        if self._editor is None:
            return None
        header = self._editor.headers()[section - 1]
        collapse = "▶" if header.collapsed else "◀"
        if not config.get_display("show_sort_indicators", True):
            return f"{header.title} {collapse}"
        return f"{_SORT_ARROWS[header.sort_direction]} {header.title} {collapse}"

    def _collapsed_size_hint(self, section: int, orientation: Qt.Orientation) -> QSize | None:
        """Fixed narrow width for collapsed language columns."""
        if orientation != Qt.Horizontal or section == 0 or self._editor is None:
            return None
        if section - 1 not in self._editor.view_state.collapsed_columns:
            return None
        return QSize(int(config.get_display("collapsed_width", 32)), 0)

    def flags(self, index: QModelIndex) -> Qt.ItemFlags:
        if index.column() == 0:
            return Qt.ItemIsEnabled | Qt.ItemIsSelectable
        return Qt.ItemIsEnabled | Qt.ItemIsSelectable | Qt.ItemIsEditable


class QtSearchScheduler(QObject):
    """Schedules debounced searches on single-shot timers.

    Installs itself as *debouncer*'s scheduler.  When a timer fires the
    token goes back to the debouncer, which ignores superseded ones, and
    *on_done* (typically ``model.refresh``) runs after a search was actually
    performed.
    """

    def __init__(self, debouncer: SearchDebouncer, on_done=None, parent=None):
        super().__init__(parent)
        self._debouncer = debouncer
        debouncer.set_scheduler(self)
        self._on_done = on_done
        self._timer: QTimer | None = None

    def __call__(self, token: PendingSearch, delay_ms: int) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda: self._fire(token))
        timer.start(delay_ms)
        self._timer = timer

    def _fire(self, token: PendingSearch) -> None:
        if self._debouncer.fire(token) and self._on_done is not None:
            self._on_done()
