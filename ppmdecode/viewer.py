from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from PyQt6.QtCore import QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QAction, QImage, QPainter, QPixmap, QTransform
from PyQt6.QtWidgets import (
    QApplication,
    QFileDialog,
    QGraphicsPixmapItem,
    QGraphicsScene,
    QGraphicsView,
    QLabel,
    QMainWindow,
    QMenu,
    QMessageBox,
    QStatusBar,
)

from . import ppm
from .errors import PPMFormatError
from .image_io import FormatRegistry, ImageFormatError, load_image
from .raster import RasterImage

logger = logging.getLogger(__name__)


def raster_to_qimage(image: RasterImage) -> QImage:
    data = bytes(image.pix)
    qimage = QImage(data, image.width, image.height, image.stride, QImage.Format.Format_RGBA8888)
    return qimage.copy()  # detach from temporary bytes


class RasterView(QGraphicsView):
    zoomChanged = pyqtSignal(float)
    cursorMoved = pyqtSignal(int, int, object)  # object for tuple[int, int, int, int] | None

    def __init__(self) -> None:
        super().__init__()
        self.setRenderHints(QPainter.RenderHint.SmoothPixmapTransform)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)
        self.setMouseTracking(True)
        self.setBackgroundBrush(Qt.GlobalColor.black)

        self._scene = QGraphicsScene(self)
        self.setScene(self._scene)

        self._pixmap_item: QGraphicsPixmapItem | None = None
        self._image: RasterImage | None = None
        self._scale = 1.0

    def set_image(self, image: RasterImage) -> None:
        pixmap = QPixmap.fromImage(raster_to_qimage(image))
        self._scene.clear()
        self._pixmap_item = self._scene.addPixmap(pixmap)
        self._scene.setSceneRect(QRectF(pixmap.rect()))
        self._image = image
        self._scale = 1.0
        self._apply_transform()

    def set_scale(self, scale: float) -> None:
        scale = max(0.1, min(16.0, scale))
        if abs(scale - self._scale) < 1e-3:
            return
        self._scale = scale
        self._apply_transform()

    def wheelEvent(self, event) -> None:  # type: ignore[override]
        if not self._pixmap_item:
            return
        factor = 1.25 if event.angleDelta().y() > 0 else 0.8
        old_pos = self.mapToScene(event.position().toPoint())
        self.set_scale(self._scale * factor)
        self.centerOn(old_pos)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        super().mouseMoveEvent(event)
        if not self._image:
            self.cursorMoved.emit(-1, -1, None)
            return
        scene_pos = self.mapToScene(event.position().toPoint())
        x = int(scene_pos.x())
        y = int(scene_pos.y())
        if 0 <= x < self._image.width and 0 <= y < self._image.height:
            self.cursorMoved.emit(x, y, self._image.pixel_at(x, y))
        else:
            self.cursorMoved.emit(-1, -1, None)

    def _apply_transform(self) -> None:
        transform = QTransform()
        transform.scale(self._scale, self._scale)
        self.setTransform(transform)
        self.zoomChanged.emit(self._scale)


class ViewerWindow(QMainWindow):
    def __init__(self, registry: FormatRegistry) -> None:
        super().__init__()
        self.setWindowTitle("PPM viewer")
        self.resize(1024, 768)

        self.registry = registry
        self.current_image: RasterImage | None = None

        self.view = RasterView()
        self.setCentralWidget(self.view)
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.zoom_label = QLabel("100%")
        self.zoom_label.setMinimumWidth(60)
        self.status_bar.addPermanentWidget(self.zoom_label)
        self.view.zoomChanged.connect(self._on_zoom_changed)
        self.view.cursorMoved.connect(self._on_cursor_moved)

        file_menu = self.menuBar().addMenu("File")
        self._add_action(file_menu, "Open...", self.open_image, shortcut="Ctrl+O")
        file_menu.addSeparator()
        self._add_action(file_menu, "Quit", self.close, shortcut="Ctrl+Q")

    def _add_action(self, menu: QMenu, text: str, handler: Callable, shortcut: str | None = None) -> QAction:
        action = QAction(text, self)
        if shortcut:
            action.setShortcut(shortcut)
        action.triggered.connect(handler)
        menu.addAction(action)
        return action

    def open_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open image", "", "PPM (*.ppm);;All files (*)")
        if path:
            self.load(path)

    def load(self, path: str | Path) -> bool:
        try:
            image = load_image(path, self.registry)
        except (OSError, ImageFormatError, PPMFormatError) as exc:
            logger.error("Failed to load %s: %s", path, exc)
            QMessageBox.critical(self, "Error", f"Could not load image:\n{exc}")
            return False
        self.current_image = image
        self.view.set_image(image)
        self.status_bar.showMessage(f"Loaded {Path(path).name} ({image.width}x{image.height})", 5000)
        return True

    def _on_zoom_changed(self, scale: float) -> None:
        self.zoom_label.setText(f"{scale * 100:.0f}%")

    def _on_cursor_moved(self, x: int, y: int, color: tuple[int, int, int, int] | None) -> None:
        if color:
            self.status_bar.showMessage(f"X:{x} Y:{y} | R:{color[0]} G:{color[1]} B:{color[2]} A:{color[3]}")
        else:
            self.status_bar.clearMessage()


def run_viewer(argv: Sequence[str] | None = None) -> int:
    import sys

    argv = list(sys.argv if argv is None else argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    registry = FormatRegistry()
    ppm.register(registry)

    app = QApplication(argv)
    window = ViewerWindow(registry)
    if len(argv) > 1:
        window.load(argv[1])
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(run_viewer())
