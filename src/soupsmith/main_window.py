from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QThread, Signal, Slot
from PySide6.QtGui import QCloseEvent, QFontDatabase, QGuiApplication
from PySide6.QtWidgets import (
    QButtonGroup,
    QComboBox,
    QFileDialog,
    QFrame,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QRadioButton,
    QScrollArea,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from .match_engine import DefinitionReport
from .models import ElementDescriptor, Extractor, OutputFormat, ScrapingMode, TestResult
from .session import WizardSession
from .snapshot import evaluate_live_page, load_html_file, snapshot_url
from .ui_state import (
    CONFIG_DIR,
    WorkspaceState,
    compute_wizard_button_state,
    load_workspace_state,
    save_workspace_state,
)

OUTPUT_FORMAT_LABELS: dict[OutputFormat, str] = {
    "csv": "CSV file",
    "json": "JSON file",
    "print": "Print to console",
}


class SnapshotWorker(QThread):
    """Save a rendered copy of a URL without blocking the window."""

    snapshot_ready = Signal(bool, str)

    def __init__(self, url: str, target: Path) -> None:
        super().__init__()
        self.url = url
        self.target = target

    def run(self) -> None:
        ok, message = snapshot_url(self.url, self.target)
        self.snapshot_ready.emit(ok, message)


class LiveTestWorker(QThread):
    """Run the current definitions against the rendered page."""

    report_ready = Signal(object, str)

    def __init__(
        self,
        url: str,
        *,
        mode: ScrapingMode,
        container: ElementDescriptor,
        extractors: list[Extractor],
    ) -> None:
        super().__init__()
        self.url = url
        self.mode = mode
        self.container = container
        self.extractors = extractors

    def run(self) -> None:
        report, message = evaluate_live_page(
            self.url,
            mode=self.mode,
            container=self.container,
            extractors=self.extractors,
        )
        self.report_ready.emit(report, message)


class FieldRow(QFrame):
    def __init__(self, extractor: Extractor, position: int) -> None:
        super().__init__()
        self.extractor_id = extractor.id
        self.setFrameShape(QFrame.Shape.StyledPanel)

        self.title_label = QLabel(f"Field #{position}")
        self.name_input = QLineEdit(extractor.name)
        self.name_input.setPlaceholderText("Variable Name (e.g., quote_text)")
        self.tag_input = QLineEdit(extractor.tag_name)
        self.tag_input.setPlaceholderText("HTML Tag (e.g., span)")
        self.attrs_input = QLineEdit(extractor.attribute_clause)
        self.attrs_input.setPlaceholderText("Attributes (e.g., class=text)")
        self.test_button = QPushButton("Test")
        self.pick_button = QPushButton("Pick...")
        self.remove_button = QPushButton("Remove")
        self.result_label = QLabel("")
        self.result_label.setWordWrap(True)

        layout = QGridLayout(self)
        layout.addWidget(self.title_label, 0, 0)
        layout.addWidget(self.pick_button, 0, 1)
        layout.addWidget(self.remove_button, 0, 2)
        layout.addWidget(self.name_input, 1, 0, 1, 3)
        layout.addWidget(self.tag_input, 2, 0, 1, 2)
        layout.addWidget(self.test_button, 2, 2)
        layout.addWidget(self.attrs_input, 3, 0, 1, 3)
        layout.addWidget(self.result_label, 4, 0, 1, 3)


class WizardWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.logger = self._build_logger()
        self.setWindowTitle("soupsmith")
        self.session = WizardSession()
        self.workspace_state = load_workspace_state() or WorkspaceState()
        self.field_rows: dict[int, FieldRow] = {}
        self._snapshot_worker: SnapshotWorker | None = None
        self._live_worker: LiveTestWorker | None = None

        self.file_label = QLabel("No HTML file loaded.")
        self.open_button = QPushButton("Open HTML...")
        self.open_button.clicked.connect(self._browse_html_file)
        self.url_input = QLineEdit(self.workspace_state.url)
        self.url_input.setPlaceholderText("https://example.com")
        self.snapshot_button = QPushButton("Save Page From URL...")
        self.snapshot_button.clicked.connect(self._snapshot_url)
        self.live_test_button = QPushButton("Test on Live Page")
        self.live_test_button.clicked.connect(self._test_live_page)

        self.structured_radio = QRadioButton("Structured Data")
        self.simple_radio = QRadioButton("Simple List")
        self.mode_group = QButtonGroup(self)
        self.mode_group.addButton(self.structured_radio)
        self.mode_group.addButton(self.simple_radio)
        self.structured_radio.toggled.connect(self._on_mode_toggled)

        self.container_tag_input = QLineEdit()
        self.container_tag_input.setPlaceholderText("HTML Tag (e.g., div)")
        self.container_tag_input.textEdited.connect(lambda value: self._on_container_edited(tag_name=value))
        self.container_attrs_input = QLineEdit()
        self.container_attrs_input.setPlaceholderText("Attributes (e.g., class=quote)")
        self.container_attrs_input.textEdited.connect(lambda value: self._on_container_edited(attribute_clause=value))
        self.container_test_button = QPushButton("Test")
        self.container_test_button.clicked.connect(self._test_container)
        self.container_pick_button = QPushButton("Pick...")
        self.container_pick_button.clicked.connect(self._pick_container)
        self.container_result_label = QLabel("")
        self.container_result_label.setWordWrap(True)

        self.fields_layout = QVBoxLayout()
        self.fields_layout.addStretch(1)
        self.add_field_button = QPushButton("Add Field")
        self.add_field_button.clicked.connect(self._add_field)

        self.output_format_combo = QComboBox()
        for output_format, label in OUTPUT_FORMAT_LABELS.items():
            self.output_format_combo.addItem(label, output_format)
        self.output_format_combo.currentIndexChanged.connect(self._on_output_format_changed)
        self.code_view = QPlainTextEdit()
        self.code_view.setReadOnly(True)
        self.code_view.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))
        self.validation_label = QLabel("")
        self.validation_label.setWordWrap(True)
        self.copy_button = QPushButton("Copy")
        self.copy_button.clicked.connect(self._copy_script)
        self.save_button = QPushButton("Save Script...")
        self.save_button.clicked.connect(self._save_script)
        self.start_over_button = QPushButton("Start Over")
        self.start_over_button.clicked.connect(self._start_over)

        self.container_group = self._build_container_group()
        self.setCentralWidget(self._build_central_widget())
        self._restore_workspace_state()

    def _build_container_group(self) -> QGroupBox:
        group = QGroupBox("Define Container")
        layout = QGridLayout(group)
        layout.addWidget(QLabel("Find the repeating element that holds all the info for one item."), 0, 0, 1, 3)
        layout.addWidget(self.container_tag_input, 1, 0)
        layout.addWidget(self.container_test_button, 1, 1)
        layout.addWidget(self.container_pick_button, 1, 2)
        layout.addWidget(self.container_attrs_input, 2, 0, 1, 3)
        layout.addWidget(self.container_result_label, 3, 0, 1, 3)
        return group

    def _build_central_widget(self) -> QWidget:
        source_row = QHBoxLayout()
        source_row.addWidget(self.open_button)
        source_row.addWidget(self.file_label, 1)
        url_row = QHBoxLayout()
        url_row.addWidget(self.url_input, 1)
        url_row.addWidget(self.snapshot_button)
        url_row.addWidget(self.live_test_button)
        mode_row = QHBoxLayout()
        mode_row.addWidget(self.structured_radio)
        mode_row.addWidget(self.simple_radio)
        mode_row.addStretch(1)

        fields_host = QWidget()
        fields_host.setLayout(self.fields_layout)
        fields_scroll = QScrollArea()
        fields_scroll.setWidgetResizable(True)
        fields_scroll.setWidget(fields_host)

        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.addLayout(source_row)
        left_layout.addLayout(url_row)
        left_layout.addLayout(mode_row)
        left_layout.addWidget(self.container_group)
        left_layout.addWidget(QLabel("Fields"))
        left_layout.addWidget(fields_scroll, 1)
        left_layout.addWidget(self.add_field_button)

        actions_row = QHBoxLayout()
        actions_row.addWidget(QLabel("Output"))
        actions_row.addWidget(self.output_format_combo, 1)
        actions_row.addWidget(self.copy_button)
        actions_row.addWidget(self.save_button)
        actions_row.addWidget(self.start_over_button)

        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.addLayout(actions_row)
        right_layout.addWidget(self.validation_label)
        right_layout.addWidget(self.code_view, 1)

        splitter = QSplitter()
        splitter.addWidget(left)
        splitter.addWidget(right)
        splitter.setStretchFactor(1, 1)
        return splitter

    def _restore_workspace_state(self) -> None:
        state = self.workspace_state
        self.session.set_mode(state.scraping_mode)
        self.session.output_format = state.output_format
        self.structured_radio.blockSignals(True)
        self.structured_radio.setChecked(state.scraping_mode == "structured")
        self.simple_radio.setChecked(state.scraping_mode == "simple")
        self.structured_radio.blockSignals(False)
        self.output_format_combo.blockSignals(True)
        self.output_format_combo.setCurrentIndex(max(self.output_format_combo.findData(state.output_format), 0))
        self.output_format_combo.blockSignals(False)
        if state.html_file and Path(state.html_file).is_file():
            self._load_html_file(Path(state.html_file))
        self._rebuild_field_rows()
        self._refresh()

    def _persist_workspace_state(self) -> None:
        self.workspace_state.url = self.url_input.text().strip()
        self.workspace_state.scraping_mode = self.session.mode
        self.workspace_state.output_format = self.session.output_format
        ok, message = save_workspace_state(self.workspace_state)
        if not ok:
            self.logger.warning("Failed to persist workspace state: %s", message)

    def _browse_html_file(self) -> None:
        start_dir = str(Path(self.workspace_state.html_file).parent) if self.workspace_state.html_file else ""
        selected, _ = QFileDialog.getOpenFileName(self, "Open HTML", start_dir, "HTML files (*.html *.htm)")
        if selected:
            self._load_html_file(Path(selected))
            self._refresh()

    def _load_html_file(self, path: Path) -> None:
        document, message = load_html_file(path)
        self._set_status(message)
        if document is None:
            return
        self.session.load_document(document, path.name)
        self.workspace_state.html_file = str(path)
        self.file_label.setText(str(path))
        self.container_result_label.clear()
        for row in self.field_rows.values():
            row.result_label.clear()
        self._persist_workspace_state()

    def _snapshot_url(self) -> None:
        if self._snapshot_worker is not None and self._snapshot_worker.isRunning():
            self._set_status("A page snapshot is already running.")
            return
        url = self.url_input.text().strip()
        target, _ = QFileDialog.getSaveFileName(self, "Save Page As", "page.html", "HTML files (*.html *.htm)")
        if not target:
            return
        self._set_status(f"Opening URL: {url}")
        self.snapshot_button.setEnabled(False)
        worker = SnapshotWorker(url, Path(target))
        worker.snapshot_ready.connect(self._on_snapshot_ready)
        self._snapshot_worker = worker
        worker.start()

    @Slot(bool, str)
    def _on_snapshot_ready(self, ok: bool, message: str) -> None:
        self.snapshot_button.setEnabled(True)
        self._set_status(message)
        if ok and self._snapshot_worker is not None:
            self._load_html_file(self._snapshot_worker.target)
        self._refresh()

    def _test_live_page(self) -> None:
        if self._live_worker is not None and self._live_worker.isRunning():
            self._set_status("A live page test is already running.")
            return
        url = self.url_input.text().strip()
        self._set_status(f"Testing definitions on {url}")
        self.live_test_button.setEnabled(False)
        worker = LiveTestWorker(
            url,
            mode=self.session.mode,
            container=ElementDescriptor(self.session.container.tag_name, self.session.container.attribute_clause),
            extractors=[
                Extractor(item.id, item.name, item.tag_name, item.attribute_clause) for item in self.session.extractors
            ],
        )
        worker.report_ready.connect(self._on_live_report_ready)
        self._live_worker = worker
        worker.start()

    @Slot(object, str)
    def _on_live_report_ready(self, report: DefinitionReport | None, message: str) -> None:
        self.live_test_button.setEnabled(True)
        self._set_status(message)
        if report is None:
            return
        self.session.apply_report(report)
        if self.session.container_result is not None:
            self._show_result(self.container_result_label, self.session.container_result)
        for extractor_id, result in self.session.field_results.items():
            row = self.field_rows.get(extractor_id)
            if row is not None:
                self._show_result(row.result_label, result)
        self.logger.info("Live page test: %s", message)
        self._refresh()

    def _choose_descriptor(self, tag_name: str) -> ElementDescriptor | None:
        candidates = self.session.pick_candidates(tag_name)
        if not candidates:
            self._set_status("No matching elements to pick from.")
            return None
        labels = [
            f"<{item.tag_name}> {item.attribute_clause}" if item.attribute_clause else f"<{item.tag_name}>"
            for item in candidates
        ]
        choice, accepted = QInputDialog.getItem(self, "Pick Element", "Element:", labels, 0, False)
        if not accepted:
            return None
        return candidates[labels.index(choice)]

    def _pick_container(self) -> None:
        descriptor = self._choose_descriptor(self.container_tag_input.text())
        if descriptor is None:
            return
        result = self.session.pick_container(descriptor)
        self.container_tag_input.setText(descriptor.tag_name)
        self.container_attrs_input.setText(descriptor.attribute_clause)
        for row in self.field_rows.values():
            row.result_label.clear()
        self._show_result(self.container_result_label, result)
        self.logger.info("Container picked: %s", result.preview)
        self._refresh()

    def _pick_field(self, extractor_id: int) -> None:
        row = self.field_rows.get(extractor_id)
        if row is None:
            return
        descriptor = self._choose_descriptor(row.tag_input.text())
        if descriptor is None:
            return
        result = self.session.pick_extractor(extractor_id, descriptor)
        row.tag_input.setText(descriptor.tag_name)
        row.attrs_input.setText(descriptor.attribute_clause)
        self._show_result(row.result_label, result)
        self.logger.info("Field picked (%s): %s", extractor_id, result.preview)
        self._refresh()

    def _on_mode_toggled(self, checked: bool) -> None:
        mode: ScrapingMode = "structured" if checked else "simple"
        if mode == self.session.mode:
            return
        self.session.set_mode(mode)
        self.container_tag_input.clear()
        self.container_attrs_input.clear()
        self.container_result_label.clear()
        self._rebuild_field_rows()
        self._persist_workspace_state()
        self._refresh()

    def _on_container_edited(self, *, tag_name: str | None = None, attribute_clause: str | None = None) -> None:
        self.session.edit_container(tag_name=tag_name, attribute_clause=attribute_clause)
        self.container_result_label.clear()
        for row in self.field_rows.values():
            row.result_label.clear()
        self._refresh()

    def _test_container(self) -> None:
        result = self.session.run_container_test()
        self._show_result(self.container_result_label, result)
        self.logger.info("Container test: %s", result.preview)
        self._refresh()

    def _add_field(self) -> None:
        self.session.add_extractor()
        self._rebuild_field_rows()
        self._refresh()

    def _remove_field(self, extractor_id: int) -> None:
        if self.session.remove_extractor(extractor_id):
            self._rebuild_field_rows()
            self._refresh()

    def _on_field_edited(self, extractor_id: int, attribute: str, value: str) -> None:
        extractor = self.session.edit_extractor(extractor_id, **{attribute: value})
        row = self.field_rows.get(extractor_id)
        if extractor is None or row is None:
            return
        if attribute == "name" and row.name_input.text() != extractor.name:
            position = row.name_input.cursorPosition()
            row.name_input.setText(extractor.name)
            row.name_input.setCursorPosition(position)
        row.result_label.clear()
        self._refresh()

    def _test_field(self, extractor_id: int) -> None:
        result = self.session.run_extractor_test(extractor_id)
        row = self.field_rows.get(extractor_id)
        if row is not None:
            self._show_result(row.result_label, result)
        self.logger.info("Field test (%s): %s", extractor_id, result.preview)
        self._refresh()

    def _rebuild_field_rows(self) -> None:
        for row in self.field_rows.values():
            self.fields_layout.removeWidget(row)
            row.deleteLater()
        self.field_rows.clear()

        for position, extractor in enumerate(self.session.extractors, start=1):
            row = FieldRow(extractor, position)
            row.name_input.textEdited.connect(lambda value, item_id=extractor.id: self._on_field_edited(item_id, "name", value))
            row.tag_input.textEdited.connect(lambda value, item_id=extractor.id: self._on_field_edited(item_id, "tag_name", value))
            row.attrs_input.textEdited.connect(
                lambda value, item_id=extractor.id: self._on_field_edited(item_id, "attribute_clause", value)
            )
            row.test_button.clicked.connect(lambda _checked=False, item_id=extractor.id: self._test_field(item_id))
            row.pick_button.clicked.connect(lambda _checked=False, item_id=extractor.id: self._pick_field(item_id))
            row.remove_button.clicked.connect(lambda _checked=False, item_id=extractor.id: self._remove_field(item_id))
            result = self.session.field_results.get(extractor.id)
            if result is not None:
                self._show_result(row.result_label, result)
            self.fields_layout.insertWidget(self.fields_layout.count() - 1, row)
            self.field_rows[extractor.id] = row

    def _on_output_format_changed(self, _index: int) -> None:
        output_format = self.output_format_combo.currentData()
        if output_format in OUTPUT_FORMAT_LABELS:
            self.session.output_format = output_format
            self._persist_workspace_state()
            self._refresh()

    def _refresh(self) -> None:
        validation = self.session.validate_generation()
        state = compute_wizard_button_state(
            has_document=self.session.document is not None,
            mode=self.session.mode,
            container_ready=self.session.container_ready,
            generation_ok=validation.ok,
        )
        structured = self.session.mode == "structured"
        self.container_group.setVisible(structured)
        self.container_test_button.setEnabled(state.can_test_container)
        self.container_pick_button.setEnabled(self.session.document is not None)
        self.add_field_button.setVisible(structured)
        self.add_field_button.setEnabled(state.can_edit_fields)
        single_row = len(self.field_rows) <= 1
        for row in self.field_rows.values():
            row.setEnabled(state.can_edit_fields)
            row.test_button.setEnabled(state.can_test_fields)
            row.pick_button.setEnabled(state.can_test_fields)
            row.remove_button.setVisible(structured)
            row.remove_button.setEnabled(not single_row)
        self.save_button.setEnabled(state.can_generate)
        self.copy_button.setEnabled(state.can_generate)
        self.validation_label.setText("" if validation.ok else validation.message)
        self.code_view.setPlainText(self.session.generate_script())

    def _copy_script(self) -> None:
        QGuiApplication.clipboard().setText(self.code_view.toPlainText())
        self._set_status("Script copied to clipboard.")

    def _save_script(self) -> None:
        target, _ = QFileDialog.getSaveFileName(self, "Save Script", "scrape.py", "Python files (*.py)")
        if not target:
            return
        try:
            Path(target).write_text(self.session.generate_script(), encoding="utf-8")
        except OSError as exc:
            self._handle_ui_exception("Could not save script.", exc)
            return
        self._set_status(f"Script saved to {target}")

    def _start_over(self) -> None:
        self.session.reset()
        self.workspace_state = WorkspaceState()
        self.file_label.setText("No HTML file loaded.")
        self.url_input.clear()
        self.container_tag_input.clear()
        self.container_attrs_input.clear()
        self.container_result_label.clear()
        self._restore_workspace_state()
        self._persist_workspace_state()

    @staticmethod
    def _show_result(label: QLabel, result: TestResult) -> None:
        label.setText(result.preview)
        label.setStyleSheet("color: #b91c1c;" if result.is_error else "color: #15803d;")

    def _set_status(self, message: str) -> None:
        self.statusBar().showMessage(message, 8000)

    def _handle_ui_exception(self, user_message: str, exc: Exception) -> None:
        self.logger.exception("%s: %s", user_message, exc)
        self._set_status(user_message)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 (Qt API)
        try:
            self._persist_workspace_state()
        except Exception as exc:
            QMessageBox.warning(self, "Shutdown warning", str(exc))

        busy = [worker for worker in (self._snapshot_worker, self._live_worker) if worker is not None]
        for worker in busy:
            worker.wait(5000)
        if any(worker.isRunning() for worker in busy):
            QMessageBox.warning(
                self,
                "Shutdown warning",
                "A page is still loading in the background. Try closing again in a moment.",
            )
            event.ignore()
            return
        super().closeEvent(event)

    @staticmethod
    def _build_logger() -> logging.Logger:
        logger = logging.getLogger("soupsmith.ui")
        if logger.handlers:
            return logger

        logger.setLevel(logging.INFO)
        logger.propagate = False
        try:
            CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(CONFIG_DIR / "ui.log", encoding="utf-8")
            file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            logger.addHandler(file_handler)
        except OSError:
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            logger.addHandler(stream_handler)
        return logger
