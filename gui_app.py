"""
gui_app.py  –  desktop front end for window_positions (PySide6)

Runs `save` / `restore --diagnostics` as a child process, then turns the
CLI's own report into a status line (captured / restored / skipped counts)
and a table with one row per saved window and its match outcome.
"""

from __future__ import annotations

import re
import shlex
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


DEFAULT_SNAPSHOT_PATH = "window_positions.json"

# action -> (button label, CLI verb + flags)
ACTIONS: Dict[str, Tuple[str, List[str]]] = {
    "save":        ("Save Positions",    ["save"]),
    "restore":     ("Restore Positions", ["restore", "--diagnostics"]),
    "restore_dry": ("Preview Restore",   ["restore", "--diagnostics", "--dry-run"]),
}

_SAVED    = re.compile(r"^Saved (\d+) window positions to (.+)$")
_RESTORED = re.compile(r"^(Restored|Would restore) (\d+) window positions "
                       r"\(Skipped=(\d+), Total=(\d+)\)$")
_DIAG     = re.compile(r"^\[DIAG\] Target: app=(.*?) title=(.*)  -> (.*)$")


@dataclass
class GuiCommand:
    label: str
    args: List[str]


@dataclass
class DiagRow:
    app_name: str
    window_title: str
    outcome: str

    @property
    def matched(self) -> bool:
        return self.outcome.startswith("matched")


@dataclass
class RunReport:
    summary: str = ""
    error: Optional[str] = None
    rows: List[DiagRow] = field(default_factory=list)


def build_cli_command(action: str, snapshot_path: str) -> GuiCommand:
    if action not in ACTIONS:
        raise ValueError(f"Unknown GUI action: {action}")
    label, verb = ACTIONS[action]
    return GuiCommand(label, [sys.executable, "-m", "window_positions",
                              verb[0], snapshot_path, *verb[1:]])


def format_command_for_log(cmd: List[str]) -> str:
    return " ".join(shlex.quote(part) for part in cmd)


def parse_report(output: str) -> RunReport:
    """Pull counts, per-record outcomes and any error out of CLI output."""
    report = RunReport()
    for line in output.splitlines():
        line = line.rstrip()
        m = _DIAG.match(line)
        if m:
            report.rows.append(DiagRow(*m.groups()))
            continue
        m = _SAVED.match(line)
        if m:
            report.summary = f"Captured {m.group(1)} windows -> {m.group(2)}"
            continue
        m = _RESTORED.match(line)
        if m:
            verb, restored, skipped, total = m.groups()
            report.summary = f"{verb} {restored} of {total} windows ({skipped} skipped)"
            continue
        if line.startswith("Error: "):
            report.error = line[len("Error: "):]
    return report


def main() -> int:
    try:
        from PySide6.QtCore import QProcess
        from PySide6.QtGui import QColor
        from PySide6.QtWidgets import (
            QApplication,
            QHBoxLayout,
            QHeaderView,
            QLabel,
            QLineEdit,
            QPushButton,
            QTableWidget,
            QTableWidgetItem,
            QVBoxLayout,
            QWidget,
        )
    except ImportError:
        print("PySide6 is required for GUI mode. Install with: pip install PySide6")
        return 1

    class PositionsWindow(QWidget):
        def __init__(self) -> None:
            super().__init__()
            self.setWindowTitle("Window Positions")
            self.resize(680, 420)
            self._output: List[str] = []

            self._proc = QProcess(self)
            self._proc.setProcessChannelMode(QProcess.MergedChannels)
            self._proc.readyReadStandardOutput.connect(self._collect)
            self._proc.finished.connect(self._show_report)

            self.snapshot = QLineEdit(DEFAULT_SNAPSHOT_PATH)
            self.buttons: List[QPushButton] = []
            controls = QHBoxLayout()
            controls.addWidget(self.snapshot, 1)
            for action, (label, _) in ACTIONS.items():
                btn = QPushButton(label)
                btn.clicked.connect(lambda _=False, a=action: self._start(a))
                controls.addWidget(btn)
                self.buttons.append(btn)

            self.table = QTableWidget(0, 3)
            self.table.setHorizontalHeaderLabels(["Application", "Window", "Outcome"])
            self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
            self.table.setEditTriggers(QTableWidget.NoEditTriggers)

            self.status = QLabel("Ready")

            layout = QVBoxLayout(self)
            layout.addLayout(controls)
            layout.addWidget(self.table, 1)
            layout.addWidget(self.status)

        def _start(self, action: str) -> None:
            cmd = build_cli_command(action, self.snapshot.text().strip() or DEFAULT_SNAPSHOT_PATH)
            self._output = []
            self.table.setRowCount(0)
            for btn in self.buttons:
                btn.setEnabled(False)
            self.status.setText(f"{cmd.label}…")
            self.status.setToolTip(format_command_for_log(cmd.args))
            self._proc.start(cmd.args[0], cmd.args[1:])

        def _collect(self) -> None:
            self._output.append(
                bytes(self._proc.readAllStandardOutput()).decode("utf-8", errors="replace"))

        def _show_report(self, code: int, _status) -> None:
            for btn in self.buttons:
                btn.setEnabled(True)
            report = parse_report("".join(self._output))
            for row in report.rows:
                i = self.table.rowCount()
                self.table.insertRow(i)
                cells = (row.app_name, row.window_title, row.outcome)
                for col, text in enumerate(cells):
                    item = QTableWidgetItem(text)
                    if not row.matched:
                        item.setForeground(QColor("gray"))
                    self.table.setItem(i, col, item)
            if report.error:
                self.status.setText(f"Failed: {report.error}")
            elif code != 0:
                self.status.setText(f"Failed (exit={code})")
            else:
                self.status.setText(report.summary or "Done")

    app = QApplication(sys.argv)
    win = PositionsWindow()
    win.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
