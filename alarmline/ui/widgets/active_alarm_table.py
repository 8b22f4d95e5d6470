from __future__ import annotations

from typing import List, Tuple

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFrame,
    QHBoxLayout,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
)

from alarmline.domain.models import AlarmRecord

AlarmRow = Tuple[str, str, str, str, str]  # modified, raised, name, status, text


def alarm_rows(alarms: List[AlarmRecord]) -> List[AlarmRow]:
    """
    Convert a snapshot into table rows, keeping the snapshot order.
    """
    rows: List[AlarmRow] = []
    for a in alarms:
        raised = a.payload.raise_time
        rows.append(
            (
                a.modification_time.strftime("%H:%M:%S"),
                "" if raised is None else raised.strftime("%H:%M:%S"),
                a.name,
                a.payload.alarm_text(0),
                a.payload.event_text,
            )
        )
    return rows


def _qcolor(argb: int) -> QColor:
    return QColor((argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF)


class ActiveAlarmTable(QFrame):
    """
    Table widget usable directly as an AlarmManager sink.

    Calling the widget with a snapshot emits ``alarms_changed``; the table is
    refreshed in the GUI thread even when the manager delivers from a timer
    thread.
    """

    alarms_changed = Signal(object)

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName("Card")

        title = QLabel("Active Alarms")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")
        self.count_label = QLabel("0")

        header = QHBoxLayout()
        header.addWidget(title)
        header.addStretch(1)
        header.addWidget(QLabel("Active:"))
        header.addWidget(self.count_label)

        self.table = QTableWidget(0, 5)
        self.table.setHorizontalHeaderLabels(["Modified", "Raised", "Alarm", "Status", "Text"])
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addLayout(header)
        layout.addWidget(self.table)

        self.alarms_changed.connect(self.show_alarms)

    def __call__(self, alarms: List[AlarmRecord]) -> None:
        self.alarms_changed.emit(list(alarms))

    def show_alarms(self, alarms: List[AlarmRecord]) -> None:
        rows = alarm_rows(alarms)
        self.count_label.setText(str(len(rows)))
        self.table.setRowCount(len(rows))
        for i, (alarm, row) in enumerate(zip(alarms, rows)):
            for c, text in enumerate(row):
                self._item(i, c, text, alarm)
        self.table.resizeColumnsToContents()

    def _item(self, r: int, c: int, text: str, alarm: AlarmRecord) -> None:
        it = QTableWidgetItem(text)
        it.setFlags(it.flags() & ~Qt.ItemIsEditable)
        if c in (0, 1, 3):
            it.setTextAlignment(Qt.AlignCenter)
        if alarm.payload.back_color is not None:
            it.setBackground(_qcolor(alarm.payload.back_color))
        if alarm.payload.text_color is not None:
            it.setForeground(_qcolor(alarm.payload.text_color))
        self.table.setItem(r, c, it)
