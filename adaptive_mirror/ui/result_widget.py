"""
Result Widget — the final screen: archetype, interpretation and the four
sub-score bars.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QFrame, QHBoxLayout, QLabel, QProgressBar, QPushButton,
    QSizePolicy, QVBoxLayout, QWidget,
)

from adaptive_mirror.data.models import Personality, Result

logger = logging.getLogger(__name__)

INTERPRETATIONS = {
    Personality.IMPULSIVE: (
        "You act quickly and adjust later. You explore aggressively and trust "
        "instinct more than analysis. Your movements reveal decisive intent "
        "with minimal deliberation."
    ),
    Personality.ANALYTICAL: (
        "You measure before moving. You prefer understanding over action, "
        "depth over breadth. Your pace suggests systematic processing and "
        "careful consideration."
    ),
    Personality.PERFECTIONIST: (
        "You refine continuously. Each deletion is a step toward precision. "
        "You see what others miss and cannot tolerate approximation."
    ),
    Personality.OBSERVER: (
        "You watch before engaging. Silence is your tool. You gather more "
        "than you reveal, exercising restraint in a world that demands reaction."
    ),
    Personality.RESTLESS: (
        "Your mind moves constantly. Stillness feels foreign. You seek the "
        "next thing before the current ends, driven by an insatiable momentum."
    ),
}
PLACEHOLDER_TEXT = 'Click "Initialize Session" to begin analysis.'

BAR_DELAY_MS = 200
BAR_STAGGER_MS = 150

# (score key, label, shown as percent)
SCORE_BARS = [
    ("focus", "Focus", False),
    ("hesitation", "Hesitation", False),
    ("control_bias", "Control bias", True),
    ("energy", "Energy", False),
]


class ScoreBar(QFrame):
    """One labelled sub-score bar."""

    def __init__(self, label: str, percent: bool = False,
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.percent = percent
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 4, 0, 4)
        layout.setSpacing(4)

        top = QHBoxLayout()
        self.name_label = QLabel(label.upper())
        self.name_label.setObjectName("metric_label")
        self.value_label = QLabel()
        self.value_label.setObjectName("metric_value")
        top.addWidget(self.name_label)
        top.addStretch()
        top.addWidget(self.value_label)
        layout.addLayout(top)

        self.bar = QProgressBar()
        self.bar.setRange(0, 100)
        self.bar.setTextVisible(False)
        layout.addWidget(self.bar)
        self.set_value(0)

    def set_value(self, value: int) -> None:
        self.bar.setValue(int(value))
        self.value_label.setText(f"{value}%" if self.percent else str(value))


class ResultWidget(QWidget):
    """Shows one Result; export and restart are forwarded as signals."""

    export_requested = Signal()
    restart_requested = Signal()

    def __init__(
        self,
        scheduler: Optional[Callable[[int, Callable[[], None]], object]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        # scheduler(delay_ms, callback) staggers the bar fill-in
        self.scheduler = scheduler
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(48, 36, 48, 36)
        layout.setSpacing(14)

        caption = QLabel("PRIMARY TRAIT")
        caption.setObjectName("metric_label")
        caption.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(caption)

        self.trait_label = QLabel("—")
        self.trait_label.setObjectName("trait")
        self.trait_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.trait_label)

        self.interpretation_label = QLabel(PLACEHOLDER_TEXT)
        self.interpretation_label.setObjectName("subtitle")
        self.interpretation_label.setWordWrap(True)
        self.interpretation_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.interpretation_label)

        self.bars: List[ScoreBar] = []
        for _, label, percent in SCORE_BARS:
            bar = ScoreBar(label, percent)
            self.bars.append(bar)
            layout.addWidget(bar)

        self.timestamp_label = QLabel("")
        self.timestamp_label.setObjectName("metric_label")
        self.timestamp_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.timestamp_label)

        layout.addStretch()

        buttons = QHBoxLayout()
        buttons.setSpacing(12)
        self.btn_export = QPushButton("Export Data")
        self.btn_export.clicked.connect(self.export_requested.emit)
        buttons.addWidget(self.btn_export)

        self.btn_restart = QPushButton("Run Again")
        self.btn_restart.setObjectName("primary")
        self.btn_restart.clicked.connect(self.restart_requested.emit)
        buttons.addWidget(self.btn_restart)
        layout.addLayout(buttons)

    # ── Public ──────────────────────────────────────────────────────────────

    def show_result(self, result: Result, when: Optional[datetime] = None) -> None:
        self.trait_label.setText(result.personality.value)
        self.trait_label.setAccessibleName(
            f"Your personality type is {result.personality.value}"
        )
        self.interpretation_label.setText(
            INTERPRETATIONS.get(result.personality, "Analysis complete.")
        )
        when = when or datetime.now()
        self.timestamp_label.setText(when.strftime("%Y-%m-%d %H:%M:%S"))

        values = result.scores.as_dict()
        for i, (key, _, _) in enumerate(SCORE_BARS):
            bar = self.bars[i]
            value = values[key]
            if self.scheduler is None:
                bar.set_value(value)
            else:
                self.scheduler(
                    BAR_DELAY_MS + i * BAR_STAGGER_MS,
                    lambda b=bar, v=value: b.set_value(v),
                )

    def clear(self) -> None:
        self.trait_label.setText("—")
        self.interpretation_label.setText(PLACEHOLDER_TEXT)
        self.timestamp_label.setText("")
        for bar in self.bars:
            bar.set_value(0)

    def set_export_feedback(self, done: bool) -> None:
        self.btn_export.setText("✓ Exported!" if done else "Export Data")
        self.btn_export.setEnabled(not done)
