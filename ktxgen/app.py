from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, QThread, Signal, QSettings
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QFileDialog,
    QFormLayout,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from .convert import SpawningPolicy, find_compressor, generate_textures, get_policy
from .models import ConversionRequest, InvocationResult, TextureFormat, TextureQuality


class ConvertWorker(QObject):
    finished = Signal(list)
    failed = Signal(str)

    def __init__(self, request: ConversionRequest) -> None:
        super().__init__()
        self.request = request
        self.run_async = request.run_async

    def run(self) -> None:
        policy = get_policy(self.request.run_async)
        try:
            results = generate_textures(self.request, policy)
        except (OSError, ValueError) as exc:
            self.failed.emit(str(exc))
            return
        if isinstance(policy, SpawningPolicy):
            errors = policy.wait()
            if errors:
                self.failed.emit("; ".join(str(error) for error in errors))
                return
        self.finished.emit(results)


class LogEmitter(QObject):
    message = Signal(str)


class SignalLogHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.emitter = LogEmitter()
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.emitter.message.emit(self.format(record))


class MainWindow(QMainWindow):

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("ktxgen")
        self.resize(800, 560)
        self.thread: QThread | None = None
        self.worker: ConvertWorker | None = None
        self.settings = QSettings("ktxgen", "ktxgen")
        self.compressor_line = QLineEdit()
        self.input_line = QLineEdit()
        self.quality_combo = QComboBox()
        self.format_boxes = {fmt: QCheckBox(fmt.value) for fmt in TextureFormat}
        self.async_checkbox = QCheckBox("异步执行（不等待压缩完成）")
        self.clean_checkbox = QCheckBox("转换前删除已有 .ktx")
        self.start_button = QPushButton("开始转换")
        self.log_area = QPlainTextEdit()
        self.log_handler = SignalLogHandler()
        self.setup_ui()

    def setup_ui(self) -> None:
        central = QWidget()
        layout = QVBoxLayout()
        layout.addWidget(self.build_path_group())
        layout.addWidget(self.build_options_group())
        layout.addWidget(self.start_button)
        layout.addWidget(self.log_area)
        central.setLayout(layout)
        self.setCentralWidget(central)
        self.log_area.setReadOnly(True)
        self.quality_combo.addItems(["高质量", "快速"])
        for box in self.format_boxes.values():
            box.setChecked(True)
        self.load_settings()
        self.start_button.clicked.connect(self.on_start)
        self.log_handler.emitter.message.connect(self.append_log)
        logging.getLogger("ktxgen").addHandler(self.log_handler)
        logging.getLogger("ktxgen").setLevel(logging.INFO)
        exit_action = QAction("退出", self)
        exit_action.triggered.connect(self.close)
        self.menuBar().addAction(exit_action)

    def build_path_group(self) -> QGroupBox:
        group = QGroupBox("路径")
        layout = QGridLayout()
        compressor_button = QPushButton("选择 PVRTexToolCLI")
        input_button = QPushButton("选择输入目录")
        compressor_button.clicked.connect(self.pick_compressor)
        input_button.clicked.connect(self.pick_input_dir)
        layout.addWidget(QLabel("压缩工具"), 0, 0)
        layout.addWidget(self.compressor_line, 0, 1)
        layout.addWidget(compressor_button, 0, 2)
        layout.addWidget(QLabel("输入目录"), 1, 0)
        layout.addWidget(self.input_line, 1, 1)
        layout.addWidget(input_button, 1, 2)
        group.setLayout(layout)
        return group

    def build_options_group(self) -> QGroupBox:
        group = QGroupBox("转换选项")
        layout = QFormLayout()
        format_layout = QHBoxLayout()
        for box in self.format_boxes.values():
            format_layout.addWidget(box)
        layout.addRow("质量", self.quality_combo)
        layout.addRow("格式", format_layout)
        layout.addRow(self.async_checkbox)
        layout.addRow(self.clean_checkbox)
        group.setLayout(layout)
        return group

    def pick_compressor(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "选择 PVRTexToolCLI", self.compressor_line.text())
        if path:
            self.compressor_line.setText(path)
            self.settings.setValue("compressor", path)

    def pick_input_dir(self) -> None:
        path = QFileDialog.getExistingDirectory(self, "选择输入目录", self.input_line.text())
        if path:
            self.input_line.setText(path)

    def get_selected_formats(self) -> tuple[TextureFormat, ...]:
        return tuple(fmt for fmt, box in self.format_boxes.items() if box.isChecked())

    def get_selected_quality(self) -> TextureQuality:
        if self.quality_combo.currentIndex() == 1:
            return TextureQuality.LOW
        return TextureQuality.HIGH

    def on_start(self) -> None:
        if self.thread is not None:
            return
        compressor = self.compressor_line.text().strip()
        input_text = self.input_line.text().strip()
        if not compressor:
            self.append_log("请先选择 PVRTexToolCLI")
            return
        input_dir = Path(input_text) if input_text else None
        if input_dir is None or not input_dir.is_dir():
            self.append_log("请输入有效的输入目录")
            return
        formats = self.get_selected_formats()
        if not formats:
            self.append_log("请选择至少一种格式")
            return
        self.settings.setValue("compressor", compressor)
        request = ConversionRequest(
            compressor=compressor,
            input_dir=input_dir,
            quality=self.get_selected_quality(),
            formats=formats,
            run_async=self.async_checkbox.isChecked(),
            clean=self.clean_checkbox.isChecked(),
        )
        self.start_conversion(request)

    def start_conversion(self, request: ConversionRequest) -> None:
        self.start_button.setEnabled(False)
        self.log_area.clear()
        self.append_log(f"开始转换：{request.input_dir}")
        self.thread = QThread()
        self.worker = ConvertWorker(request)
        self.worker.moveToThread(self.thread)
        self.thread.started.connect(self.worker.run)
        self.worker.finished.connect(self.on_finished)
        self.worker.finished.connect(self.thread.quit)
        self.worker.failed.connect(self.on_failed)
        self.worker.failed.connect(self.thread.quit)
        self.thread.finished.connect(self.on_thread_finished)
        self.thread.start()

    def on_finished(self, results: list[InvocationResult]) -> None:
        if self.worker is not None and self.worker.run_async:
            self.append_log("已在后台启动转换")
            return
        failed = sum(1 for result in results if not result.success)
        self.append_log(f"完成：共 {len(results)} 个纹理，失败 {failed} 个")

    def on_failed(self, message: str) -> None:
        self.append_log(f"转换中止：{message}")

    def on_thread_finished(self) -> None:
        self.start_button.setEnabled(True)
        self.thread = None
        self.worker = None

    def append_log(self, text: str) -> None:
        self.log_area.appendPlainText(text)

    def load_settings(self) -> None:
        compressor = self.settings.value("compressor", "") or find_compressor() or ""
        if compressor:
            self.compressor_line.setText(compressor)

    def closeEvent(self, event) -> None:
        logging.getLogger("ktxgen").removeHandler(self.log_handler)
        super().closeEvent(event)


def main() -> None:
    app = QApplication([])
    window = MainWindow()
    window.show()
    app.exec()
