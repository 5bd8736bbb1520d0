"""
Main application window.

Orchestrates image loading, the crop and shape tools, rotate/flip, undo
history, and saving the edited image.
"""

import logging
from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QLabel, QFileDialog,
    QMessageBox, QStatusBar, QToolBar, QComboBox, QApplication,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence, QShortcut

from region_editor.config import DEFAULT_SHAPE, IMAGE_EXTENSIONS, SHAPES
from region_editor.history import EditHistory
from region_editor.image_io import compute_fingerprint, save_image
from region_editor.models import Rectangle, ShapeManipulationData
from region_editor.overlay_widget import ImageLoaderThread, RegionOverlayWidget
from region_editor.selection_cache import load_selection_cache, lookup_shape, save_selection_cache, store_shape
from region_editor.transforms import (
    CropTransform, FlipTransform, RotateTransform, ShapeTransform, execute_transform,
)

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Region Editor")
        self.setMinimumSize(700, 500)

        # Screen-aware startup size, clamped to 80% of screen
        preferred_w, preferred_h = 1280, 860
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)

        self._path: Path | None = None
        self._fingerprint = ""
        self._history: EditHistory | None = None
        self._loader: ImageLoaderThread | None = None
        self._selection_cache: dict = load_selection_cache()

        self._build_ui()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        self._overlay = RegionOverlayWidget()
        self._overlay.region_changed.connect(self._update_region_info)
        self._overlay.applied.connect(self._on_tool_applied)
        self._overlay.cancelled.connect(self._on_tool_cancelled)
        layout.addWidget(self._overlay, stretch=1)

        self._region_info = QLabel("")
        self._region_info.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._region_info)

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image to begin.")

        QShortcut(QKeySequence.StandardKey.Undo, self, self._undo)
        QShortcut(QKeySequence.StandardKey.Redo, self, self._redo)
        QShortcut(QKeySequence(Qt.Key.Key_C), self, self._start_crop)
        QShortcut(QKeySequence(Qt.Key.Key_S), self, self._start_shape)
        QShortcut(QKeySequence(Qt.Key.Key_R), self, self._reset_region)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        def action(text, slot, tip=""):
            act = QAction(text, self)
            act.setToolTip(tip or text)
            act.triggered.connect(slot)
            toolbar.addAction(act)
            return act

        action("📂 Open", self._open_image)
        self._act_save = action("💾 Save As…", self._save_image)
        toolbar.addSeparator()

        self._act_crop = action("✂ Crop", self._start_crop, "Crop (C)")
        self._shape_combo = QComboBox()
        self._shape_combo.addItems(SHAPES)
        self._shape_combo.setCurrentText(DEFAULT_SHAPE)
        toolbar.addWidget(self._shape_combo)
        self._act_shape = action("◯ Shape", self._start_shape, "Shape mask (S)")
        self._act_reset_region = action("↺ Reset Selection", self._reset_region, "Reset selection (R)")
        toolbar.addSeparator()

        self._act_rotate_ccw = action("⟲ 90°", lambda: self._apply_transform(RotateTransform(270), "Rotated"))
        self._act_rotate_cw = action("⟳ 90°", lambda: self._apply_transform(RotateTransform(90), "Rotated"))
        self._act_flip_h = action("⇋ Flip H", lambda: self._apply_transform(FlipTransform("horizontal"), "Flipped"))
        self._act_flip_v = action("⇵ Flip V", lambda: self._apply_transform(FlipTransform("vertical"), "Flipped"))
        toolbar.addSeparator()

        self._act_undo = action("↶ Undo", self._undo)
        self._act_redo = action("↷ Redo", self._redo)

    # =========================================================================
    # Image loading
    # =========================================================================

    def _open_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        filename, _ = QFileDialog.getOpenFileName(self, "Open Image", "", f"Images ({patterns})")
        if filename:
            self.load_path(Path(filename))

    def load_path(self, path: Path):
        self._path = path
        try:
            self._fingerprint = compute_fingerprint(path)
        except OSError as exc:
            logger.warning("Could not fingerprint %s: %s", path, exc)
            self._fingerprint = ""

        self._overlay.clear()
        self._overlay.set_loading(True)

        if self._loader is not None and self._loader.isRunning():
            self._loader.loaded.disconnect()
            self._loader.error.disconnect()
            self._loader.wait(500)

        self._loader = ImageLoaderThread(path, self)
        self._loader.loaded.connect(self._on_image_loaded)
        self._loader.error.connect(self._on_image_load_error)
        self._loader.start()

    def _on_image_loaded(self, img: Image.Image):
        self._history = EditHistory(img)
        self._show_current()
        self._status.showMessage(f"Loaded {self._path.name}  ({img.width}×{img.height})")

    def _on_image_load_error(self, error: str):
        self._overlay.set_loading(False)
        logger.error("Failed to load %s: %s", self._path, error)
        self._status.showMessage(f"Failed to load image: {error}")

    def _show_current(self):
        self._overlay.set_image(self._history.current)
        self._update_region_info()
        self._update_button_states()

    # =========================================================================
    # Tools
    # =========================================================================

    def _start_crop(self):
        if self._overlay.start_crop():
            self._status.showMessage("Drag the crop box or its handles.  Enter applies, Esc cancels.")
        self._update_button_states()

    def _start_shape(self):
        if self._history is None:
            return
        shape = self._shape_combo.currentText()
        img = self._history.current
        saved = None
        if self._fingerprint:
            saved = lookup_shape(self._selection_cache, self._fingerprint, img.width, img.height)
        if self._overlay.start_shape(shape, saved):
            self._status.showMessage(f"Position the {shape} mask.  Enter applies, Esc cancels.")
        self._update_button_states()

    def _reset_region(self):
        tool = self._overlay.tool
        if tool is not None:
            tool.reset()

    def _on_tool_applied(self, name: str, data):
        if name == "crop":
            self._apply_transform(CropTransform(data), "Cropped")
        else:
            self._remember_shape(data)
            self._apply_transform(ShapeTransform(data), f"Applied {data.shape} mask")

    def _on_tool_cancelled(self):
        self._status.showMessage("Selection cancelled.")
        self._update_region_info()
        self._update_button_states()

    def _remember_shape(self, data: ShapeManipulationData):
        if not self._fingerprint or self._history is None:
            return
        img = self._history.current
        store_shape(self._selection_cache, self._fingerprint, img.width, img.height, data)
        save_selection_cache(self._selection_cache)

    def _update_region_info(self):
        tool = self._overlay.tool
        if tool is None:
            self._region_info.setText("")
            return
        box: Rectangle = tool.box
        text = f"{tool.name}: x {box.x:.0f}, y {box.y:.0f}, {box.width:.0f} × {box.height:.0f}"
        if tool.name == "shape":
            m = tool.manipulation
            text += f"  |  center ({m.center_x:.2f}, {m.center_y:.2f})  scale {m.scale:.2f}"
        self._region_info.setText(text)

    # =========================================================================
    # Transforms and history
    # =========================================================================

    def _apply_transform(self, transform, message: str):
        if self._history is None:
            return
        try:
            result = execute_transform(self._history.current, transform)
        except ValueError as exc:
            logger.error("Transform failed: %s", exc)
            QMessageBox.warning(self, "Edit failed", str(exc))
            return
        self._history.push(result)
        self._show_current()
        self._status.showMessage(f"{message}  ({result.width}×{result.height})")

    def _undo(self):
        if self._history is not None and self._overlay.tool is None and self._history.undo():
            self._show_current()

    def _redo(self):
        if self._history is not None and self._overlay.tool is None and self._history.redo():
            self._show_current()

    def _save_image(self):
        if self._history is None:
            return
        default = str(self._path.with_name(f"{self._path.stem}-edited.png")) if self._path else ""
        filename, _ = QFileDialog.getSaveFileName(self, "Save Image", default, "PNG (*.png);;JPEG (*.jpg *.jpeg)")
        if not filename:
            return
        try:
            out = save_image(self._history.current, Path(filename))
        except OSError as exc:
            logger.error("Could not save %s: %s", filename, exc)
            QMessageBox.warning(self, "Save failed", str(exc))
            return
        self._status.showMessage(f"Saved {out}")

    def _update_button_states(self):
        has_image = self._history is not None
        editing = self._overlay.tool is not None
        for act in (self._act_save, self._act_crop, self._act_shape,
                    self._act_rotate_ccw, self._act_rotate_cw, self._act_flip_h, self._act_flip_v):
            act.setEnabled(has_image and not editing)
        self._shape_combo.setEnabled(has_image and not editing)
        self._act_reset_region.setEnabled(editing)
        self._act_undo.setEnabled(has_image and not editing and self._history.can_undo())
        self._act_redo.setEnabled(has_image and not editing and self._history.can_redo())

    def closeEvent(self, event):
        self._overlay.close_tool()
        if self._loader is not None and self._loader.isRunning():
            self._loader.wait(2000)
        save_selection_cache(self._selection_cache)
        super().closeEvent(event)
