"""
Main application window.

Two tabs: the editor (preview with crop selection, settings panel,
transformed output) driven by ``EditorController``, and the quick page that
converts every dropped or pasted image straight to a capped JPEG on disk.
"""

from contextlib import ExitStack
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QGroupBox, QComboBox, QSpinBox, QCheckBox, QFileDialog, QMessageBox,
    QStatusBar, QStackedWidget, QTabWidget, QApplication, QScrollArea,
)
from PyQt6.QtCore import Qt

from jpeg_crop_tool.config import (
    WINDOW_TITLE, QUALITY_OPTIONS, THUMBNAIL_SIZE,
    PREVIEW_MAX_HEIGHT_FRACTION, PREVIEW_MAX_WIDTH_FRACTION,
)
from jpeg_crop_tool.controller import EditorController
from jpeg_crop_tool.crop_widget import CropPreviewWidget, pixmap_from_bytes
from jpeg_crop_tool.dimensions import is_thumbnail
from jpeg_crop_tool.errors import ConversionError
from jpeg_crop_tool.image_input import DropArea, image_paste_listener
from jpeg_crop_tool.image_io import format_bytes, output_path_for, write_output
from jpeg_crop_tool.models import Dimensions, EditorSettings, EncodedImage
from jpeg_crop_tool.quick import quick_save

_MAX_SPIN = 100_000

_TAB_QUICK = 1


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.setMinimumSize(900, 500)

        preferred_w, preferred_h = 1600, 900
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.9))
            preferred_h = min(preferred_h, int(avail.height() * 0.9))
        self.resize(preferred_w, preferred_h)

        self._controller = EditorController(self)
        self._output_dir: Path | None = None
        self._save_dir: Path | None = None

        self._build_ui()
        self._connect_controller()

        # Paste listening lives exactly as long as the window
        self._subscriptions = ExitStack()
        self._subscriptions.enter_context(image_paste_listener(self._on_images_pasted))

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._tabs = QTabWidget()
        self._tabs.addTab(self._build_editor_page(), "Editor")
        self._tabs.addTab(self._build_quick_page(), "Quick")
        self.setCentralWidget(self._tabs)

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Paste an image (Ctrl+V) or drop a file to begin.")

    def _build_editor_page(self) -> QWidget:
        page = QWidget()
        layout = QHBoxLayout(page)
        layout.setContentsMargins(4, 4, 4, 4)

        layout.addWidget(self._build_source_panel(), stretch=1)
        layout.addWidget(self._build_settings_panel())
        layout.addWidget(self._build_output_panel(), stretch=1)
        return page

    def _build_source_panel(self) -> QWidget:
        panel = QWidget()
        panel_layout = QVBoxLayout(panel)
        panel_layout.setContentsMargins(0, 0, 0, 0)

        self._source_info = QLabel("")
        self._source_info.setStyleSheet("color: #aaa;")
        panel_layout.addWidget(self._source_info)

        self._source_stack = QStackedWidget()

        self._editor_drop = DropArea("Paste image or drop file!")
        self._editor_drop.images_dropped.connect(self._load_first)
        self._source_stack.addWidget(self._editor_drop)

        preview_holder = DropArea()
        preview_holder.images_dropped.connect(self._load_first)
        holder_layout = preview_holder.layout()
        self._preview = CropPreviewWidget()
        self._preview.display_ratio_changed.connect(self._controller.set_display_ratio)
        self._preview.selection_changed.connect(self._controller.set_crop_selection)
        holder_layout.addWidget(self._preview, alignment=Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
        holder_layout.addStretch()
        self._source_stack.addWidget(preview_holder)

        panel_layout.addWidget(self._source_stack, stretch=1)
        self._update_preview_limits()
        return panel

    def _update_preview_limits(self):
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        avail = screen.availableGeometry()
        self._preview.set_max_display_size(
            int(avail.width() * PREVIEW_MAX_WIDTH_FRACTION),
            int(avail.height() * PREVIEW_MAX_HEIGHT_FRACTION),
        )

    def _build_settings_panel(self) -> QWidget:
        inner = QWidget()
        inner_layout = QVBoxLayout(inner)
        inner_layout.setContentsMargins(0, 0, 0, 0)

        inner_layout.addWidget(self._build_optimize_group())
        inner_layout.addWidget(self._build_resize_group())
        inner_layout.addWidget(self._build_crop_group())

        self._btn_save = QPushButton("💾 Save JPEG…")
        self._btn_save.clicked.connect(self._save_output)
        inner_layout.addWidget(self._btn_save)

        inner_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(inner)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        scroll.setFrameShape(scroll.Shape.NoFrame)
        scroll.setFixedWidth(300)

        self._update_button_states()
        return scroll

    def _build_optimize_group(self) -> QGroupBox:
        group = QGroupBox("Optimize")
        row = QHBoxLayout(group)
        row.addWidget(QLabel("Quality:"))
        self._quality = QComboBox()
        for q in QUALITY_OPTIONS:
            self._quality.addItem(str(q), q)
        self._quality.setCurrentIndex(self._quality.findData(self._controller.settings.quality))
        self._quality.currentIndexChanged.connect(
            lambda idx: self._controller.set_quality(self._quality.itemData(idx))
        )
        row.addWidget(self._quality, stretch=1)
        return group

    def _build_resize_group(self) -> QGroupBox:
        group = QGroupBox("Resize")
        layout = QVBoxLayout(group)

        preset_row = QHBoxLayout()
        self._btn_original = QPushButton("Original")
        self._btn_original.clicked.connect(self._controller.reset_to_original)
        preset_row.addWidget(self._btn_original)
        self._btn_thumbnail = QPushButton(f"Thumbnail ({THUMBNAIL_SIZE}px)")
        self._btn_thumbnail.setCheckable(True)
        self._btn_thumbnail.clicked.connect(self._on_thumbnail_clicked)
        preset_row.addWidget(self._btn_thumbnail)
        layout.addLayout(preset_row)

        size_row = QHBoxLayout()
        size_row.addWidget(QLabel("Width:"))
        self._width_spin = QSpinBox()
        self._width_spin.setRange(0, _MAX_SPIN)
        self._width_spin.setSuffix(" px")
        self._width_spin.valueChanged.connect(self._controller.request_width)
        size_row.addWidget(self._width_spin)
        size_row.addWidget(QLabel("Height:"))
        self._height_spin = QSpinBox()
        self._height_spin.setRange(0, _MAX_SPIN)
        self._height_spin.setSuffix(" px")
        self._height_spin.valueChanged.connect(self._controller.request_height)
        size_row.addWidget(self._height_spin)
        layout.addLayout(size_row)

        self._keep_ratio = QCheckBox("Keep Ratio")
        self._keep_ratio.setChecked(self._controller.keep_ratio)
        self._keep_ratio.toggled.connect(self._controller.set_keep_ratio)
        layout.addWidget(self._keep_ratio)
        return group

    def _build_crop_group(self) -> QGroupBox:
        group = QGroupBox("Crop")
        layout = QVBoxLayout(group)
        self._crop_info_label = QLabel("Crop: none")
        self._crop_info_label.setWordWrap(True)
        layout.addWidget(self._crop_info_label)
        btn_clear = QPushButton("✖ Clear Crop")
        btn_clear.setToolTip("Drop the selection and go back to the full image")
        btn_clear.clicked.connect(self._preview.clear_selection)
        layout.addWidget(btn_clear)
        self._btn_clear_crop = btn_clear
        return group

    def _build_output_panel(self) -> QWidget:
        group = QGroupBox("Transformed Image")
        layout = QVBoxLayout(group)
        self._output_info = QLabel("")
        self._output_info.setStyleSheet("color: #aaa;")
        layout.addWidget(self._output_info)
        self._output_view = QLabel()
        self._output_view.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
        layout.addWidget(self._output_view, stretch=1)
        return group

    def _build_quick_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setContentsMargins(4, 4, 4, 4)

        folder_row = QHBoxLayout()
        btn_output = QPushButton("💾 Set Output Folder")
        btn_output.clicked.connect(self._select_output_folder)
        folder_row.addWidget(btn_output)
        self._output_dir_label = QLabel("No output folder")
        self._output_dir_label.setStyleSheet("color: #888;")
        folder_row.addWidget(self._output_dir_label, stretch=1)
        layout.addLayout(folder_row)

        self._quick_drop = DropArea("Drag and Drop or Paste from Clipboard the image!")
        self._quick_drop.images_dropped.connect(self._quick_convert_all)
        layout.addWidget(self._quick_drop, stretch=1)
        return page

    def _connect_controller(self):
        c = self._controller
        c.settings_changed.connect(self._on_settings_changed)
        c.metadata_changed.connect(self._on_metadata_changed)
        c.output_changed.connect(self._on_output_changed)
        c.conversion_failed.connect(self._on_conversion_failed)
        c.source_rejected.connect(self._on_source_rejected)

    # =========================================================================
    # Input
    # =========================================================================

    def _on_images_pasted(self, payloads: list):
        if self._tabs.currentIndex() == _TAB_QUICK:
            self._quick_convert_all(payloads)
        else:
            self._load_first(payloads)

    def _load_first(self, payloads: list):
        data, name = payloads[0]
        self._load_source(data, name)

    def _load_source(self, data: bytes, name: str):
        if not self._controller.set_source(data, name):
            return
        try:
            pixmap = pixmap_from_bytes(data)
        except ConversionError as e:
            QMessageBox.warning(self, "Preview Failed", f"Could not show {name}:\n{e}")
            return
        self._source_stack.setCurrentIndex(1)
        self._preview.set_image(pixmap)
        self._source_info.setText(self._describe_source())
        self._update_crop_info()
        self._update_button_states()
        self._status.showMessage(f"Loaded {name or 'image'}")

    def _describe_source(self) -> str:
        c = self._controller
        if c.source is None or c.metadata is None:
            return ""
        return f"File Size: {format_bytes(len(c.source))}  w: {c.metadata.width}px  h: {c.metadata.height}px"

    # =========================================================================
    # Controller feedback
    # =========================================================================

    def _on_settings_changed(self, settings: EditorSettings):
        for spin, value in ((self._width_spin, settings.width), (self._height_spin, settings.height)):
            spin.blockSignals(True)
            spin.setValue(value)
            spin.blockSignals(False)
        idx = self._quality.findData(settings.quality)
        if idx != self._quality.currentIndex():
            self._quality.blockSignals(True)
            self._quality.setCurrentIndex(idx)
            self._quality.blockSignals(False)
        self._keep_ratio.setChecked(self._controller.keep_ratio)
        self._btn_thumbnail.setChecked(is_thumbnail(settings.size))

    def _on_metadata_changed(self, dims: Dimensions):
        self._source_info.setText(self._describe_source())
        self._update_crop_info()

    def _on_output_changed(self, image: EncodedImage):
        self._output_info.setText(
            f"File Size: {format_bytes(image.size)}  w: {image.width}px  h: {image.height}px"
        )
        pixmap = pixmap_from_bytes(image.data)
        box = self._output_view.size()
        if pixmap.width() > box.width() or pixmap.height() > box.height():
            pixmap = pixmap.scaled(
                box, Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation,
            )
        self._output_view.setPixmap(pixmap)
        self._update_button_states()

    def _on_conversion_failed(self, message: str):
        self._status.showMessage(f"Conversion failed: {message}")

    def _on_source_rejected(self, message: str):
        QMessageBox.warning(self, "Unsupported Image", f"Could not load the image:\n{message}")

    def _update_crop_info(self):
        crop = self._controller.crop
        if crop is None:
            self._crop_info_label.setText("Crop: none (drag on the image to select)")
            return
        dims = self._controller.metadata
        size = f"{dims.width} × {dims.height} px" if dims is not None else "measuring…"
        self._crop_info_label.setText(f"Crop: {size}")

    def _update_button_states(self):
        has_source = self._controller.source is not None
        for w in (self._btn_original, self._btn_thumbnail, self._width_spin, self._height_spin,
                  self._keep_ratio, self._quality, self._btn_clear_crop):
            w.setEnabled(has_source)
        self._btn_save.setEnabled(self._controller.output is not None)

    def _on_thumbnail_clicked(self):
        self._controller.apply_thumbnail(THUMBNAIL_SIZE)
        self._btn_thumbnail.setChecked(is_thumbnail(self._controller.settings.size))

    # =========================================================================
    # Output
    # =========================================================================

    def _save_output(self):
        self._controller.flush_pending_edit()
        if not self._controller.wait_for_idle():
            self._status.showMessage("Conversion still running, try again in a moment.")
            return
        image = self._controller.output
        if image is None:
            return
        start_dir = self._save_dir or Path.home()
        suggested = output_path_for(self._controller.source_name or "image", start_dir)
        filename, _ = QFileDialog.getSaveFileName(self, "Save JPEG", str(suggested), "JPEG (*.jpg *.jpeg)")
        if not filename:
            return
        out_path = Path(filename)
        try:
            write_output(image.data, out_path)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to save {out_path.name}:\n{e}")
            return
        self._save_dir = out_path.parent
        self._status.showMessage(f"Saved {out_path} ({format_bytes(image.size)})")

    def _select_output_folder(self) -> bool:
        folder = QFileDialog.getExistingDirectory(self, "Select Output Folder", str(self._output_dir or Path.home()))
        if not folder:
            return False
        self._output_dir = Path(folder)
        self._output_dir_label.setText(str(self._output_dir))
        return True

    def _quick_convert_all(self, payloads: list):
        if self._output_dir is None and not self._select_output_folder():
            QMessageBox.warning(self, "No Output Folder", "Please select an output folder first.")
            return

        written, errors = [], []
        for data, name in payloads:
            try:
                written.append(quick_save(data, name, self._output_dir))
            except (ConversionError, OSError) as e:
                errors.append(f"{name}: {e}")

        if written:
            names = ", ".join(p.name for p in written)
            self._status.showMessage(f"Saved {len(written)} file(s) to {self._output_dir}: {names}")
        if errors:
            err_names = "\n".join(errors[:10])
            suffix = f"\n… and {len(errors) - 10} more" if len(errors) > 10 else ""
            QMessageBox.warning(self, "Some conversions failed", f"{len(errors)} failed:\n\n{err_names}{suffix}")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def closeEvent(self, event):
        self._subscriptions.close()
        self._controller.shutdown()
        super().closeEvent(event)
