from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication, QCheckBox, QMainWindow, QVBoxLayout, QWidget

from alarmline.bootstrap import SORT_ORDER_TAG, build_app_system
from alarmline.ui.qt_timers import QtTimerService
from alarmline.ui.widgets.active_alarm_table import ActiveAlarmTable


def main() -> None:
    """
    Start the demo window, the simulated alarm source and the update task.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - Optional CLI usage:
        python -m alarmline.dev.run_app --config path/to/config.yaml
    """
    app = QApplication(sys.argv)

    config_path = None
    if "--config" in sys.argv:
        i = sys.argv.index("--config")
        if i + 1 < len(sys.argv):
            config_path = sys.argv[i + 1]

    # Throttle timers fire on the GUI event loop.
    wiring = build_app_system(config_path=config_path, timers=QtTimerService(app))

    table = ActiveAlarmTable()
    wiring.sinks.add(table)

    sort_box = QCheckBox("Newest first")
    sort_box.setChecked(wiring.config.feed.sort_order_descending)
    sort_box.toggled.connect(lambda checked: wiring.tags.write({SORT_ORDER_TAG: checked}))

    central = QWidget()
    layout = QVBoxLayout(central)
    layout.addWidget(sort_box)
    layout.addWidget(table)

    win = QMainWindow()
    win.setWindowTitle(f"Alarm feed: {wiring.config.feed.name}")
    win.setCentralWidget(central)
    win.resize(900, 500)
    win.show()

    wiring.start()
    app.aboutToQuit.connect(wiring.stop)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
