"""
Main Window — the four screens of Adaptive Mirror and the input capture.

Contains:
  - Intro screen (session id, returning-user note, start button)
  - Observation screen (countdown, progress, activity dots, typing field)
  - Transition screen shown while the result is being revealed
  - Result screen (ResultWidget)

An application-wide event filter forwards pointer, wheel, touch and key
events to the SessionController.
"""

from __future__ import annotations

import logging
import random
import sqlite3
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QEvent, QObject, QStandardPaths, Qt, Slot
from PySide6.QtGui import QCloseEvent, QGuiApplication, QKeyEvent, QWindow
from PySide6.QtWidgets import (
    QApplication, QHBoxLayout, QLabel, QLineEdit, QMainWindow, QMessageBox,
    QProgressBar, QPushButton, QStackedWidget, QVBoxLayout, QWidget,
)

from adaptive_mirror.animation.ambient_widget import AmbientWidget
from adaptive_mirror.animation.sound_manager import SoundManager
from adaptive_mirror.config import Capabilities, MirrorConfig, load_config
from adaptive_mirror.data.database import Database
from adaptive_mirror.data.models import Personality, Result, ResultRecord
from adaptive_mirror.data.repository import Repository
from adaptive_mirror.services.export_service import write_export
from adaptive_mirror.services.session_clock import SessionState
from adaptive_mirror.services.session_service import SessionController
from adaptive_mirror.services.timer_registry import TimerRegistry
from adaptive_mirror.ui.result_widget import ResultWidget
from adaptive_mirror.ui.styles import theme_stylesheet

logger = logging.getLogger(__name__)

INTRO, OBSERVATION, TRANSITION, RESULT = range(4)
SCREEN_NAMES = ["Intro Screen", "Observation Screen", "Transition Screen", "Result Screen"]

SOUND_ON_ICON = "◬"
SOUND_OFF_ICON = "◯"

INDICATOR_FLASH_MS = 500
BACKSPACE_FLASH_MS = 100
EXPORT_FEEDBACK_MS = 2000
FOCUS_DELAY_MS = 100
GLITCH_FIRST_MS = 3000
GLITCH_MS = 50
GLITCH_CHANCE = 0.3

# Qt::Key_Dead_* occupy this block
DEAD_KEY_FIRST = 0x01001250
DEAD_KEY_LAST = 0x0100129F


def key_name(event: QKeyEvent) -> str:
    """Map a Qt key event to the names the accumulator understands."""
    key = int(event.key())
    if key == int(Qt.Key.Key_Backspace):
        return "Backspace"
    if DEAD_KEY_FIRST <= key <= DEAD_KEY_LAST:
        return "Dead"
    text = event.text()
    if len(text) == 1 and text.isprintable():
        return text
    return ""


def modifier_names(event: QKeyEvent) -> list:
    mods = event.modifiers()
    names = []
    if mods & Qt.KeyboardModifier.ControlModifier:
        names.append("ctrl")
    if mods & Qt.KeyboardModifier.MetaModifier:
        names.append("meta")
    if mods & Qt.KeyboardModifier.AltModifier:
        names.append("alt")
    return names


class MainWindow(QMainWindow):
    """The main application window."""

    def __init__(self, config: Optional[MirrorConfig] = None,
                 db_path: Optional[Path] = None) -> None:
        super().__init__()
        self.setWindowTitle("Adaptive Mirror")
        self.setMinimumSize(720, 560)
        self.resize(960, 680)

        # ── Initialize core systems ─────────────────────────────────────
        self.config = config or load_config()
        self.db = Database(db_path)
        self.db.connect()
        self.repo = Repository(self.db.conn)
        self.timers = TimerRegistry(max_one_shots=self.config.tracking.max_transient_timers)
        self.sound = SoundManager(
            enabled=self.config.sound_enabled,
            volume=self.config.volume,
            scheduler=self.timers.single_shot,
        )
        self.capabilities = Capabilities(
            reduced_motion=self.config.reduced_motion,
            audio_available=self.sound.available,
        )
        self.controller = SessionController(
            self.config,
            timers=self.timers,
            capabilities=self.capabilities,
            on_state_changed=self._on_state_changed,
            on_countdown=self._on_countdown,
            on_completed=self._on_completed,
            on_activity=self._on_activity,
        )
        self.theme: Optional[Personality] = None
        self._hidden = False
        self._glitch_running = False

        # ── Build UI ────────────────────────────────────────────────────
        self._build_ui()
        self._switch_screen(INTRO)
        self._load_previous_result()

        app = QApplication.instance()
        app.installEventFilter(self)
        app.applicationStateChanged.connect(self._on_application_state)

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self) -> None:
        self.ambient = AmbientWidget(self.capabilities.reduced_motion)
        self.setCentralWidget(self.ambient)
        main_layout = QVBoxLayout(self.ambient)
        main_layout.setContentsMargins(16, 12, 16, 16)
        main_layout.setSpacing(0)

        top = QHBoxLayout()
        self.session_label = QLabel()
        self.session_label.setObjectName("session_id")
        top.addWidget(self.session_label)
        top.addStretch()
        self.btn_sound = QPushButton()
        self.btn_sound.setObjectName("sound_toggle")
        self.btn_sound.setCheckable(True)
        self.btn_sound.clicked.connect(self._on_toggle_sound)
        top.addWidget(self.btn_sound)
        main_layout.addLayout(top)

        self.stack = QStackedWidget()
        self.stack.addWidget(self._build_intro())
        self.stack.addWidget(self._build_observation())
        self.stack.addWidget(self._build_transition())
        self.result_widget = ResultWidget(scheduler=self.timers.single_shot)
        self.result_widget.export_requested.connect(self._on_export)
        self.result_widget.restart_requested.connect(self._on_restart)
        self.stack.addWidget(self.result_widget)
        main_layout.addWidget(self.stack)

        self._update_sound_button()
        self._update_session_label()

    def _build_intro(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(48, 48, 48, 48)
        layout.setSpacing(16)
        layout.addStretch()

        title = QLabel("Adaptive Mirror")
        title.setObjectName("title")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)

        subtitle = QLabel(
            "For thirty seconds, just be yourself. Move, click, scroll or type. "
            "The mirror watches how you act, not what you do."
        )
        subtitle.setObjectName("subtitle")
        subtitle.setWordWrap(True)
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(subtitle)

        self.returning_label = QLabel("Welcome back. Your last reflection is still on record.")
        self.returning_label.setObjectName("returning")
        self.returning_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.returning_label.hide()
        layout.addWidget(self.returning_label)

        self.btn_begin = QPushButton("Initialize Session")
        self.btn_begin.setObjectName("primary")
        self.btn_begin.setMinimumHeight(48)
        self.btn_begin.clicked.connect(self._on_begin)
        layout.addWidget(self.btn_begin, alignment=Qt.AlignmentFlag.AlignCenter)

        layout.addStretch()
        return widget

    def _build_observation(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(48, 36, 48, 36)
        layout.setSpacing(14)

        self.timer_label = QLabel("30")
        self.timer_label.setObjectName("timer")
        self.timer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.timer_label)

        self.progress = QProgressBar()
        self.progress.setRange(0, 1000)
        self.progress.setTextVisible(False)
        self.progress.setValue(1000)
        layout.addWidget(self.progress)

        dots = QHBoxLayout()
        dots.addStretch()
        self.indicators = {}
        for kind in ("movement", "interaction"):
            dot = QLabel(f"● {kind}")
            dot.setObjectName("indicator")
            self.indicators[kind] = dot
            dots.addWidget(dot)
        dots.addStretch()
        layout.addLayout(dots)

        layout.addStretch()
        prompt = QLabel("Type anything that comes to mind:")
        prompt.setObjectName("subtitle")
        layout.addWidget(prompt)

        self.typing_field = QLineEdit()
        self.typing_field.setPlaceholderText("…")
        self.typing_field.setAttribute(Qt.WidgetAttribute.WA_InputMethodEnabled, True)
        layout.addWidget(self.typing_field)
        layout.addStretch()

        self.btn_abort = QPushButton("Abort")
        self.btn_abort.setObjectName("danger")
        self.btn_abort.clicked.connect(self._on_abort)
        layout.addWidget(self.btn_abort, alignment=Qt.AlignmentFlag.AlignCenter)
        return widget

    def _build_transition(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.addStretch()
        label = QLabel("Analyzing behavioral patterns…")
        label.setObjectName("subtitle")
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(label)
        layout.addStretch()
        return widget

    # ── Screens ─────────────────────────────────────────────────────────

    def _switch_screen(self, index: int) -> None:
        self.stack.setCurrentIndex(index)
        self.setWindowTitle(f"Adaptive Mirror | {SCREEN_NAMES[index]}")

    def _update_session_label(self) -> None:
        self.session_label.setText(f"SESSION {self.controller.session_id}")

    def _update_sound_button(self) -> None:
        enabled = self.sound.enabled
        self.btn_sound.setChecked(enabled)
        self.btn_sound.setText(SOUND_ON_ICON if enabled else SOUND_OFF_ICON)
        self.btn_sound.setToolTip("Sound on" if enabled else "Sound off")
        self.btn_sound.setEnabled(self.capabilities.audio_available)

    def _load_previous_result(self) -> None:
        try:
            previous = self.repo.get_latest_result()
        except sqlite3.Error as e:
            logger.warning("Could not read previous result: %s", e)
            previous = None
        self.returning_label.setVisible(previous is not None)

    # ── Session actions ─────────────────────────────────────────────────

    @Slot()
    def _on_begin(self) -> None:
        if not self.controller.start():
            return
        self._update_session_label()
        self.timer_label.setProperty("warning", False)
        self._repolish(self.timer_label)
        self.typing_field.clear()
        self._switch_screen(OBSERVATION)
        self.sound.play_start()
        self.timers.single_shot(FOCUS_DELAY_MS, self._focus_typing_field)

    def _focus_typing_field(self) -> None:
        if self.controller.is_observing and not self._hidden:
            self.typing_field.setFocus(Qt.FocusReason.OtherFocusReason)

    @Slot()
    def _on_abort(self) -> None:
        self.controller.abort()
        self._reset_view()

    @Slot()
    def _on_restart(self) -> None:
        self.controller.reset()
        self._reset_view()

    def _reset_view(self) -> None:
        self._glitch_running = False
        self.theme = None
        self.setStyleSheet("")
        self.ambient.reset_particles()
        self.ambient.clear_ripples()
        self.result_widget.clear()
        self.result_widget.set_export_feedback(False)
        self.typing_field.clear()
        for dot in self.indicators.values():
            dot.setProperty("active", False)
            self._repolish(dot)
        self._switch_screen(INTRO)
        self.sound.play_start()

    # ── Controller callbacks ────────────────────────────────────────────

    def _on_countdown(self, remaining: int, progress: float) -> None:
        self.timer_label.setText(f"{remaining:02d}")
        warning = remaining <= 5
        if self.timer_label.property("warning") != warning:
            self.timer_label.setProperty("warning", warning)
            self._repolish(self.timer_label)
        self.progress.setValue(int(round((1 - progress) * 1000)))

    def _on_state_changed(self, state: str) -> None:
        logger.debug("Session state → %s", state)
        self.ambient.set_paused(state == SessionState.PAUSED)

    def _on_activity(self, kind: str) -> None:
        dot = self.indicators.get(kind)
        if dot is None or dot.property("active"):
            return
        dot.setProperty("active", True)
        self._repolish(dot)

        def _off() -> None:
            dot.setProperty("active", False)
            self._repolish(dot)

        self.timers.single_shot(INDICATOR_FLASH_MS, _off, essential=True)

    def _on_completed(self, result: Result) -> None:
        self._switch_screen(TRANSITION)
        session_id = self.controller.session_id
        self.timers.single_shot(
            self.config.tracking.result_reveal_delay_ms,
            lambda: self._reveal(result, session_id),
            essential=True,
        )

    def _reveal(self, result: Result, session_id: str) -> None:
        if (self.controller.session_id != session_id
                or self.controller.state != SessionState.COMPLETED):
            logger.debug("Skipping stale reveal for session %s", session_id)
            return
        self._apply_theme(result.personality)
        self.result_widget.show_result(result)
        self._persist(result, session_id)
        self._switch_screen(RESULT)
        self.sound.play_success()

    def _persist(self, result: Result, session_id: str) -> None:
        metrics = self.controller.final_metrics
        record = ResultRecord(
            session_id=session_id,
            personality=result.personality,
            scores=result.scores,
            distance_px=int(round(metrics.mouse_distance)) if metrics else 0,
            interactions=metrics.interactions if metrics else 0,
        )
        try:
            self.repo.save_result(record)
        except sqlite3.Error as e:
            logger.warning("Failed to save result: %s", e)

    # ── Theme ───────────────────────────────────────────────────────────

    def _apply_theme(self, personality: Personality) -> None:
        self.theme = personality
        self.setStyleSheet(theme_stylesheet(personality))
        if self.capabilities.reduced_motion:
            return
        self.ambient.apply_theme(personality)
        if personality == Personality.RESTLESS and not self._glitch_running:
            self._glitch_running = True
            self.timers.single_shot(GLITCH_FIRST_MS, self._glitch)

    def _glitch(self) -> None:
        if not self._glitch_running or self.theme != Personality.RESTLESS:
            self._glitch_running = False
            return
        if random.random() <= GLITCH_CHANCE and not self.capabilities.reduced_motion:
            origin = self.stack.pos()
            dx = random.randint(-2, 2)
            dy = random.randint(-2, 2)
            self.stack.move(origin.x() + dx, origin.y() + dy)
            self.timers.single_shot(
                GLITCH_MS, lambda: self.stack.move(origin), essential=True
            )
        self.timers.single_shot(random.randint(5000, 13000), self._glitch)

    # ── Sound / export ──────────────────────────────────────────────────

    @Slot()
    def _on_toggle_sound(self) -> None:
        self.sound.set_enabled(not self.sound.enabled)
        self._update_sound_button()
        self.sound.play_toggle()

    @Slot()
    def _on_export(self) -> None:
        result = self.controller.result
        if result is None:
            return
        directory = Path(
            QStandardPaths.writableLocation(QStandardPaths.StandardLocation.DownloadLocation)
            or Path.home()
        )
        screen = self.screen() or QGuiApplication.primaryScreen()
        geometry = (
            (screen.size().width(), screen.size().height(), screen.depth())
            if screen else (0, 0, 0)
        )
        try:
            write_export(result, self.controller.session_id, directory, geometry)
        except OSError as e:
            logger.error("Export failed: %s", e)
            QMessageBox.warning(self, "Export Failed", "Export failed. Please try again.")
            return
        self.result_widget.set_export_feedback(True)
        self.timers.single_shot(
            EXPORT_FEEDBACK_MS,
            lambda: self.result_widget.set_export_feedback(False),
            essential=True,
        )

    # ── Input capture ───────────────────────────────────────────────────

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        if obj is self.typing_field:
            self._filter_typing(event)
        elif isinstance(obj, QWindow):
            self._filter_window(event)
        return False

    def _filter_window(self, event: QEvent) -> None:
        etype = event.type()
        ctl = self.controller
        if etype == QEvent.Type.MouseMove:
            pos = event.globalPosition()
            ctl.handle_pointer_move(pos.x(), pos.y())
        elif etype == QEvent.Type.MouseButtonPress:
            pos = event.globalPosition()
            target = QApplication.widgetAt(pos.toPoint())
            on_control = target is not None and (
                target is self.btn_sound or self.btn_sound.isAncestorOf(target)
            )
            if ctl.is_observing and not on_control:
                local = self.ambient.mapFromGlobal(pos.toPoint())
                self.ambient.add_ripple(local.x(), local.y())
            ctl.handle_click(is_control_target=on_control)
        elif etype == QEvent.Type.Wheel:
            delta = event.pixelDelta()
            if delta.isNull():
                delta = event.angleDelta()
            ctl.handle_wheel(delta.y())
            ctl.handle_scroll()
        elif etype in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate):
            points = event.points()
            if points:
                pos = points[0].globalPosition()
                ctl.handle_pointer_move(pos.x(), pos.y())
        elif etype in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
            ctl.handle_pointer_release()
        elif etype == QEvent.Type.KeyPress and event.key() == Qt.Key.Key_Escape:
            if ctl.state in (SessionState.OBSERVING, SessionState.PAUSED):
                self._on_abort()

    def _filter_typing(self, event: QEvent) -> None:
        etype = event.type()
        ctl = self.controller
        if etype == QEvent.Type.KeyPress:
            name = key_name(event)
            ctl.handle_keydown(name, modifier_names(event))
            if name == "Backspace" and ctl.is_observing:
                self._flash_typing_field()
        elif etype == QEvent.Type.KeyRelease:
            ctl.handle_input_activity()
        elif etype == QEvent.Type.InputMethod:
            ctl.handle_composition(bool(event.preeditString()))
            if event.commitString():
                ctl.handle_input_activity()

    def _flash_typing_field(self) -> None:
        self.typing_field.setStyleSheet("border-color: rgba(255, 100, 100, 0.6);")
        self.timers.single_shot(
            BACKSPACE_FLASH_MS, lambda: self.typing_field.setStyleSheet(""), essential=True
        )

    # ── Visibility ──────────────────────────────────────────────────────

    def _set_hidden(self, hidden: bool) -> None:
        if hidden == self._hidden:
            return
        self._hidden = hidden
        self.controller.handle_visibility_change(hidden)
        self.ambient.set_paused(hidden)

    def _on_application_state(self, state) -> None:
        self._set_hidden(state in (
            Qt.ApplicationState.ApplicationHidden,
            Qt.ApplicationState.ApplicationSuspended,
        ))

    def changeEvent(self, event: QEvent) -> None:
        if event.type() == QEvent.Type.WindowStateChange:
            self._set_hidden(self.isMinimized())
        super().changeEvent(event)

    # ── Helpers / teardown ──────────────────────────────────────────────

    @staticmethod
    def _repolish(widget: QWidget) -> None:
        widget.style().unpolish(widget)
        widget.style().polish(widget)

    def closeEvent(self, event: QCloseEvent) -> None:
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)
        self.controller.teardown()
        self.timers.cancel_all()
        self.sound.shutdown()
        self.db.close()
        logger.info("Main window closed.")
        event.accept()


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Builds the screens, owns Database, Repository, TimerRegistry,
#   SoundManager and SessionController, and wires them together.
#
# Data flow:
#   Qt input → eventFilter() → controller.handle_*()
#   controller.on_countdown → timer label + progress bar
#   controller.on_completed → transition screen → (2.5 s) _reveal() →
#   theme + ResultWidget + Repository.save_result() + success tones
