"""
Dark stylesheet for the whole application, plus per-archetype accents.
Child screens stay transparent so the ambient particles show through.
"""

from adaptive_mirror.data.models import Personality

DEFAULT_ACCENT = "#58a6ff"

THEME_ACCENTS = {
    Personality.IMPULSIVE: "#ff006e",
    Personality.ANALYTICAL: "#8b949e",
    Personality.PERFECTIONIST: "#adb5bd",
    Personality.OBSERVER: "#7c7c9a",
    Personality.RESTLESS: "#00ff88",
}

DARK_STYLESHEET = """
/* ── Base ────────────────────────────────────────────────────────── */
QWidget {
    background: transparent;
    color: #c9d1d9;
    font-family: "Segoe UI", "Inter", sans-serif;
    font-size: 13px;
}

QMainWindow {
    background-color: #0d1117;
}

/* ── Buttons ─────────────────────────────────────────────────────── */
QPushButton {
    background-color: #161b22;
    color: #c9d1d9;
    border: 1px solid #30363d;
    border-radius: 8px;
    padding: 8px 18px;
    font-weight: 600;
    min-height: 24px;
}

QPushButton:hover {
    background-color: #21262d;
    border-color: #58a6ff;
}

QPushButton:pressed {
    background-color: #30363d;
}

QPushButton:disabled {
    background-color: #0d1117;
    color: #484f58;
    border-color: #21262d;
}

QPushButton#primary {
    background-color: #58a6ff;
    color: #0d1117;
    border: none;
}

QPushButton#primary:hover {
    background-color: #79c0ff;
}

QPushButton#danger {
    background-color: transparent;
    color: #f85149;
    border: 1px solid #f85149;
}

QPushButton#sound_toggle {
    min-width: 32px;
    padding: 4px 8px;
    font-size: 16px;
}

/* ── Input fields ────────────────────────────────────────────────── */
QLineEdit {
    background-color: #161b22;
    color: #c9d1d9;
    border: 1px solid #30363d;
    border-radius: 6px;
    padding: 8px 10px;
    selection-background-color: #58a6ff;
    selection-color: #0d1117;
}

QLineEdit:focus {
    border-color: #58a6ff;
}

/* ── Labels ──────────────────────────────────────────────────────── */
QLabel#title {
    font-size: 26px;
    font-weight: 700;
    color: #f0f6fc;
}

QLabel#subtitle {
    font-size: 15px;
    color: #8b949e;
}

QLabel#returning {
    font-size: 13px;
    color: #3fb950;
}

QLabel#session_id {
    font-family: "Consolas", "Courier New", monospace;
    color: #8b949e;
}

QLabel#timer {
    font-size: 48px;
    font-weight: 700;
    font-family: "Consolas", "Courier New", monospace;
    color: #f0f6fc;
}

QLabel#timer[warning="true"] {
    color: #f85149;
}

QLabel#indicator {
    color: #484f58;
    font-size: 11px;
}

QLabel#indicator[active="true"] {
    color: #3fb950;
}

QLabel#trait {
    font-size: 40px;
    font-weight: 800;
}

QLabel#metric_label {
    font-size: 11px;
    color: #8b949e;
}

QLabel#metric_value {
    font-size: 13px;
    font-weight: 700;
    color: #f0f6fc;
}

/* ── Progress Bar ────────────────────────────────────────────────── */
QProgressBar {
    background-color: #21262d;
    border: none;
    border-radius: 3px;
    max-height: 6px;
}

QProgressBar::chunk {
    background-color: #58a6ff;
    border-radius: 3px;
}

/* ── Message Box ─────────────────────────────────────────────────── */
QMessageBox {
    background-color: #161b22;
}
"""


def accent_for(personality) -> str:
    return THEME_ACCENTS.get(personality, DEFAULT_ACCENT)


def theme_stylesheet(personality) -> str:
    """Accent overrides layered on top of DARK_STYLESHEET for a result theme."""
    accent = accent_for(personality)
    return f"""
QLabel#trait {{ color: {accent}; }}
QProgressBar::chunk {{ background-color: {accent}; }}
QPushButton#primary {{ background-color: {accent}; }}
QLineEdit:focus {{ border-color: {accent}; }}
"""
