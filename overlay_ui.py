from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import QPoint, Qt, pyqtSignal
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import QFrame, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from config_utils import read_int_env
from recording_controller import RecordingStatus

MAIN_BUTTON_TEXT = {
    RecordingStatus.IDLE: "Tap to start recording",
    RecordingStatus.REQUESTING_PERMISSION: "Requesting microphone access...",
    RecordingStatus.RECORDING: "Tap to stop recording",
    RecordingStatus.STOPPING: "Stopping recording...",
    RecordingStatus.PROCESSING: "Processing audio...",
    RecordingStatus.COMPLETED: "Tap to record again",
    RecordingStatus.ERROR: "Tap to try again",
}

READY_TEXT = {
    RecordingStatus.COMPLETED: ("Transcription Complete", "Your voice has been converted to text"),
    RecordingStatus.ERROR: ("Ready to Retry", "Tap the microphone to try again"),
    RecordingStatus.PROCESSING: ("Processing Audio", "Converting speech to text..."),
}
DEFAULT_READY_TEXT = ("Ready to Record", "Tap the microphone to start recording")

LOCKED_STATUSES = frozenset(
    {
        RecordingStatus.REQUESTING_PERMISSION,
        RecordingStatus.STOPPING,
        RecordingStatus.PROCESSING,
    }
)


def format_elapsed(seconds: float) -> str:
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


class VoiceOverlayWindow(QWidget):
    DRAG_ZONE_HEIGHT = 48

    start_requested = pyqtSignal()
    stop_requested = pyqtSignal()
    retry_requested = pyqtSignal()
    close_requested = pyqtSignal()
    transcription_ready = pyqtSignal(str)
    reply_ready = pyqtSignal(str)

    def __init__(self) -> None:
        super().__init__()
        self._drag_offset: Optional[QPoint] = None
        self._status = RecordingStatus.IDLE
        self._build_ui()
        self._apply_window_style()
        self.set_status(RecordingStatus.IDLE)

    @property
    def status(self) -> RecordingStatus:
        return self._status

    def set_status(self, status: RecordingStatus) -> None:
        self._status = status
        self.main_button.setText(MAIN_BUTTON_TEXT[status])
        self.main_button.setEnabled(status not in LOCKED_STATUSES)
        recording = status is RecordingStatus.RECORDING
        self.recording_label.setVisible(recording)
        self.timer_label.setVisible(recording)
        title, subtitle = READY_TEXT.get(status, DEFAULT_READY_TEXT)
        self.ready_title_label.setText(title)
        self.ready_subtitle_label.setText(subtitle)
        self.ready_title_label.setVisible(not recording)
        self.ready_subtitle_label.setVisible(not recording)
        if status in (RecordingStatus.IDLE, RecordingStatus.REQUESTING_PERMISSION):
            self.clear_messages()
        if status is RecordingStatus.REQUESTING_PERMISSION:
            self.set_elapsed(0)

    def set_elapsed(self, seconds: float) -> None:
        self.timer_label.setText(format_elapsed(seconds))

    def show_error(self, message: str) -> None:
        self.error_label.setText(message)
        self.error_row.show()

    def show_transcript(self, text: str, language_label: Optional[str] = None) -> None:
        self.success_label.setText("Recording transcribed successfully!")
        self.language_label.setText(f"Detected: {language_label}" if language_label else "")
        self.language_label.setVisible(bool(language_label))
        self.transcript_label.setText(text)
        self.reply_label.clear()
        self.reply_label.hide()
        self.success_box.show()

    def show_reply(self, text: str) -> None:
        self.reply_label.setText(text)
        self.reply_label.show()
        self.success_box.show()

    def clear_messages(self) -> None:
        self.error_label.clear()
        self.error_row.hide()
        self.transcript_label.clear()
        self.reply_label.clear()
        self.reply_label.hide()
        self.success_box.hide()

    def _on_main_button_clicked(self) -> None:
        if self._status in LOCKED_STATUSES:
            return
        if self._status is RecordingStatus.RECORDING:
            self.stop_requested.emit()
            return
        self.start_requested.emit()

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(6, 6, 6, 6)

        panel = QFrame()
        panel.setObjectName("overlayPanel")
        root.addWidget(panel)

        layout = QVBoxLayout(panel)
        layout.setContentsMargins(16, 12, 16, 16)
        layout.setSpacing(10)

        header = QHBoxLayout()
        title = QLabel("Voice Message")
        title.setObjectName("overlayTitle")
        header.addWidget(title)
        header.addStretch(1)
        self.close_button = QPushButton("Close")
        self.close_button.clicked.connect(self.close_requested.emit)
        header.addWidget(self.close_button)
        layout.addLayout(header)

        self.error_row = QFrame()
        self.error_row.setObjectName("errorRow")
        error_layout = QHBoxLayout(self.error_row)
        error_layout.setContentsMargins(10, 6, 10, 6)
        self.error_label = QLabel("")
        self.error_label.setWordWrap(True)
        error_layout.addWidget(self.error_label, 1)
        self.retry_button = QPushButton("Try Again")
        self.retry_button.clicked.connect(self.retry_requested.emit)
        error_layout.addWidget(self.retry_button)
        self.error_row.hide()
        layout.addWidget(self.error_row)

        self.success_box = QFrame()
        self.success_box.setObjectName("successBox")
        success_layout = QVBoxLayout(self.success_box)
        success_layout.setContentsMargins(10, 6, 10, 6)
        self.success_label = QLabel("")
        self.language_label = QLabel("")
        self.transcript_label = QLabel("")
        self.transcript_label.setWordWrap(True)
        self.reply_label = QLabel("")
        self.reply_label.setObjectName("replyLabel")
        self.reply_label.setWordWrap(True)
        for label in (self.success_label, self.language_label, self.transcript_label, self.reply_label):
            success_layout.addWidget(label)
        self.reply_label.hide()
        self.success_box.hide()
        layout.addWidget(self.success_box)

        self.ready_title_label = QLabel("")
        self.ready_title_label.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        self.ready_subtitle_label = QLabel("")
        self.ready_subtitle_label.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        layout.addWidget(self.ready_title_label)
        layout.addWidget(self.ready_subtitle_label)

        recording_row = QHBoxLayout()
        self.recording_label = QLabel("Recording")
        self.recording_label.setObjectName("recordingLabel")
        self.timer_label = QLabel(format_elapsed(0))
        self.timer_label.setFont(self._make_font(read_int_env("OVERLAY_TIMER_FONT_SIZE", 20), bold=True))
        recording_row.addStretch(1)
        recording_row.addWidget(self.recording_label)
        recording_row.addWidget(self.timer_label)
        recording_row.addStretch(1)
        layout.addLayout(recording_row)

        self.main_button = QPushButton("")
        self.main_button.setObjectName("mainButton")
        self.main_button.clicked.connect(self._on_main_button_clicked)
        layout.addWidget(self.main_button)

    def _apply_window_style(self) -> None:
        self.setWindowTitle("Voice Career Assistant")
        self.setWindowFlags(Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint | Qt.WindowType.Tool)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self.setMinimumSize(360, 260)
        self.resize(420, 300)
        self.setStyleSheet(
            """
            #overlayPanel {
                background-color: rgba(28, 28, 28, 200);
                border: 1px solid rgba(255, 255, 255, 48);
                border-radius: 12px;
            }
            #errorRow {
                background-color: rgba(120, 30, 30, 180);
                border-radius: 8px;
            }
            #successBox {
                background-color: rgba(30, 100, 60, 180);
                border-radius: 8px;
            }
            #recordingLabel {
                color: rgb(255, 110, 110);
            }
            #replyLabel {
                border-top: 1px solid rgba(255, 255, 255, 60);
                padding-top: 6px;
            }
            QLabel {
                color: white;
            }
            QPushButton {
                background-color: rgba(70, 70, 70, 220);
                color: white;
                border: 1px solid rgba(255, 255, 255, 50);
                border-radius: 8px;
                padding: 6px 9px;
            }
            QPushButton:disabled {
                color: rgba(255, 255, 255, 120);
            }
            """
        )

    def mousePressEvent(self, event) -> None:  # noqa: N802 - Qt override naming
        if event.button() == Qt.MouseButton.LeftButton and event.position().toPoint().y() <= self.DRAG_ZONE_HEIGHT:
            self._drag_offset = event.globalPosition().toPoint() - self.frameGeometry().topLeft()
            event.accept()

    def mouseMoveEvent(self, event) -> None:  # noqa: N802 - Qt override naming
        if self._drag_offset is not None and event.buttons() & Qt.MouseButton.LeftButton:
            self.move(event.globalPosition().toPoint() - self._drag_offset)
            event.accept()

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802 - Qt override naming
        self._drag_offset = None
        event.accept()

    @staticmethod
    def _make_font(point_size: int, bold: bool = False) -> QFont:
        font = QFont()
        font.setPointSize(point_size)
        font.setBold(bold)
        return font
