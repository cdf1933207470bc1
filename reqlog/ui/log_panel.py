from __future__ import annotations

from typing import Dict

from PySide6 import QtCore, QtWidgets

SEVERITY_COLOR: Dict[str, str] = {
    "info": "#274060",
    "warning": "#665200",
    "error": "#7a1f1f",
}


def _style_sheet() -> str:
    rules = [
        "table.reqlog { border-collapse: collapse; }",
        "th { text-align: left; padding: 2px 6px; }",
        "td { padding: 2px 6px; color: #ffffff; }",
    ]
    rules.extend(
        f"tr.log-{level} {{ background-color: {color}; }}" for level, color in SEVERITY_COLOR.items()
    )
    return "\n".join(rules)


class LogReportPanel(QtWidgets.QWidget):
    """Read-only viewer that accepts rendered request-log reports.

    Implements the ``emit(text)`` output contract, so it can be handed straight
    to ``RequestLogger.render``.
    """

    MAX_REPORTS = 50

    def __init__(self, parent: QtWidgets.QWidget | None = None) -> None:
        super().__init__(parent)
        self._reports: list[str] = []
        self._browser = QtWidgets.QTextBrowser(self)
        self._browser.setReadOnly(True)
        self._browser.setOpenLinks(False)
        self._browser.document().setDefaultStyleSheet(_style_sheet())
        self._browser.setFocusPolicy(QtCore.Qt.NoFocus)
        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(self._browser)
        layout.setContentsMargins(0, 0, 0, 0)

    @QtCore.Slot(str)
    def emit(self, text: str) -> None:
        self._reports.append(text)
        if len(self._reports) > self.MAX_REPORTS:
            del self._reports[0]
        self._browser.setHtml("<hr/>".join(self._reports))
        scrollbar = self._browser.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def report_count(self) -> int:
        return len(self._reports)

    def plain_text(self) -> str:
        return self._browser.toPlainText()

    def clear(self) -> None:
        self._reports.clear()
        self._browser.clear()


__all__ = ["LogReportPanel", "SEVERITY_COLOR"]
