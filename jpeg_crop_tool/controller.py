"""
Editor state machine: derives target size and output image from user input.

``EditorController`` owns the single current (source, crop, display ratio,
settings, output) state.  Every change funnels into ``recompute()``, which
bumps a generation counter and starts a background ``ConvertThread``.
Results come back to the GUI thread through a queued signal and are only
committed when their generation is still the current one, so a slow early
run can never overwrite a newer result.

Width/height typing is debounced with a single-shot ``QTimer``; quality,
crop and source changes recompute immediately.
"""

import logging
from dataclasses import dataclass, replace

from PyQt6.QtCore import QCoreApplication, QObject, QThread, QTimer, pyqtSignal, pyqtSlot

from jpeg_crop_tool.config import EDIT_DEBOUNCE_MS, QUALITY_OPTIONS, THUMBNAIL_SIZE
from jpeg_crop_tool.coords import map_to_source, normalize_selection
from jpeg_crop_tool.dimensions import calculate_thumbnail, resize_dimension
from jpeg_crop_tool.errors import ConversionError, GeometryError
from jpeg_crop_tool.image_io import read_dimensions
from jpeg_crop_tool.models import ConvertConfig, CropSelection, Dimensions, EditorSettings, EncodedImage
from jpeg_crop_tool.pipeline import convert_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionOutcome:
    """Result of one background run, tagged with the generation that started it."""
    generation: int
    config: ConvertConfig
    image: EncodedImage | None = None
    error: str | None = None


# =============================================================================
# Background conversion
# =============================================================================
class ConvertThread(QThread):
    """Runs one pipeline conversion off the GUI thread."""
    result_ready = pyqtSignal(object)  # ConversionOutcome

    def __init__(self, generation: int, data: bytes, config: ConvertConfig, convert=convert_image, parent=None):
        super().__init__(parent)
        self._generation = generation
        self._data = data
        self._config = config
        self._convert = convert

    def run(self):
        try:
            image = self._convert(self._data, self._config)
        except ConversionError as e:
            self.result_ready.emit(ConversionOutcome(self._generation, self._config, error=str(e)))
        except Exception as e:
            logger.exception("Unexpected failure in conversion #%d", self._generation)
            self.result_ready.emit(
                ConversionOutcome(self._generation, self._config, error=f"{type(e).__name__}: {e}")
            )
        else:
            self.result_ready.emit(ConversionOutcome(self._generation, self._config, image=image))


# =============================================================================
# Controller
# =============================================================================
class EditorController(QObject):
    """Derived-settings controller for the editor page."""

    settings_changed = pyqtSignal(object)   # EditorSettings
    metadata_changed = pyqtSignal(object)   # Dimensions
    output_changed = pyqtSignal(object)     # EncodedImage
    conversion_failed = pyqtSignal(str)
    source_rejected = pyqtSignal(str)

    def __init__(self, parent=None, convert=convert_image, debounce_ms: int = EDIT_DEBOUNCE_MS):
        super().__init__(parent)
        self._convert = convert

        # Inputs
        self._source: bytes | None = None
        self._source_name = ""
        self._natural: Dimensions | None = None
        self._crop: CropSelection | None = None
        self._display_ratio = 0.0
        self._settings = EditorSettings()
        self._keep_ratio = True

        # Derived
        self._metadata: Dimensions | None = None
        self._output: EncodedImage | None = None

        # Run bookkeeping
        self._generation = 0
        self._threads: set[ConvertThread] = set()

        # Debounced width/height edits, one value per side in touch order
        self._pending_edits: dict[str, int] = {}
        self._edit_timer = QTimer(self)
        self._edit_timer.setSingleShot(True)
        self._edit_timer.setInterval(debounce_ms)
        self._edit_timer.timeout.connect(self._apply_pending_edits)

    # --- Read-only state ---

    @property
    def source(self) -> bytes | None:
        return self._source

    @property
    def source_name(self) -> str:
        return self._source_name

    @property
    def natural_size(self) -> Dimensions | None:
        return self._natural

    @property
    def metadata(self) -> Dimensions | None:
        """Size the settings are derived from: the crop size when cropping, else the source size."""
        return self._metadata

    @property
    def crop(self) -> CropSelection | None:
        return self._crop

    @property
    def display_ratio(self) -> float:
        return self._display_ratio

    @property
    def settings(self) -> EditorSettings:
        return self._settings

    @property
    def keep_ratio(self) -> bool:
        return self._keep_ratio

    @property
    def output(self) -> EncodedImage | None:
        return self._output

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        return bool(self._threads)

    def current_config(self) -> ConvertConfig:
        """Merged instruction set for the next run; the crop is left out until the preview is measured."""
        crop = self._crop if self._display_ratio > 0 else None
        return ConvertConfig.from_settings(self._settings, crop, self._display_ratio)

    # --- Inputs ---

    def set_source(self, data: bytes, name: str = "") -> bool:
        """Load a new source image. Returns False (and emits ``source_rejected``) if it cannot be read."""
        try:
            natural = read_dimensions(data)
        except ConversionError as e:
            logger.warning("Rejected source %r: %s", name, e)
            self.source_rejected.emit(str(e))
            return False

        self._cancel_pending_edits()
        self._source = bytes(data)
        self._source_name = name
        self._natural = natural
        self._crop = None
        self._display_ratio = 0.0
        logger.debug("Loaded source %r (%dx%d, %d bytes)", name, natural.width, natural.height, len(data))

        self._derive_metadata()
        self.recompute()
        return True

    def set_display_ratio(self, ratio: float):
        """Record the measured preview scale; ``0`` means not measured yet."""
        ratio = ratio if ratio > 0 else 0.0
        if ratio == self._display_ratio:
            return
        self._display_ratio = ratio
        if self._crop is not None:
            self._derive_metadata()
            self.recompute()

    def set_crop_selection(self, selection: CropSelection | None):
        """Apply a drawn selection; tiny or empty selections clear the crop."""
        crop = normalize_selection(selection)
        if crop == self._crop:
            return
        self._crop = crop
        self._cancel_pending_edits()
        self._derive_metadata()
        self.recompute()

    def clear_crop(self):
        self.set_crop_selection(None)

    def set_quality(self, quality: int):
        if quality not in QUALITY_OPTIONS:
            raise ValueError(f"quality must be one of {QUALITY_OPTIONS}, got {quality!r}")
        self._update_settings(self._settings.with_quality(quality))

    def set_settings(self, settings: EditorSettings):
        """Replace the settings wholesale (both sides assigned directly)."""
        if settings.quality not in QUALITY_OPTIONS:
            raise ValueError(f"quality must be one of {QUALITY_OPTIONS}, got {settings.quality!r}")
        if settings.width < 0 or settings.height < 0:
            raise ValueError(f"target size must not be negative, got {settings.width}x{settings.height}")
        self._cancel_pending_edits()
        self._update_settings(settings)

    def set_keep_ratio(self, keep: bool):
        self._keep_ratio = bool(keep)

    def request_width(self, width: int):
        self._queue_edit("width", width)

    def request_height(self, height: int):
        self._queue_edit("height", height)

    def apply_thumbnail(self, size: int = THUMBNAIL_SIZE):
        """Cap the current metadata size to *size* on its longer side."""
        if self._metadata is None:
            return
        self._keep_ratio = True
        self.set_settings(self._settings.with_size(calculate_thumbnail(self._metadata, size)))

    def reset_to_original(self):
        """Go back to the metadata size (source or crop size)."""
        if self._metadata is None:
            return
        self._keep_ratio = True
        self.set_settings(self._settings.with_size(self._metadata))

    # --- Debounced edits ---

    def _queue_edit(self, side: str, value: int):
        # Re-insert so the last touched side ends up last
        self._pending_edits.pop(side, None)
        self._pending_edits[side] = int(value)
        self._edit_timer.start()

    def _cancel_pending_edits(self):
        self._edit_timer.stop()
        self._pending_edits.clear()

    def flush_pending_edit(self):
        """Apply queued width/height edits now instead of waiting for the timer."""
        if self._pending_edits:
            self._edit_timer.stop()
            self._apply_pending_edits()

    def _apply_pending_edits(self):
        if not self._pending_edits:
            return
        edits = dict(self._pending_edits)
        self._pending_edits.clear()

        try:
            for side, value in edits.items():
                if value < 0:
                    raise GeometryError(f"{side} must not be negative, got {value}")
            if self._keep_ratio:
                # The last touched side wins; it re-derives the other one
                side, value = list(edits.items())[-1]
                size = resize_dimension(self._settings.size, **{side: value})
            else:
                size = replace(self._settings.size, **edits)
        except ConversionError as e:
            logger.warning("Ignoring size edit %s: %s", edits, e)
            self.conversion_failed.emit(str(e))
            return

        self._update_settings(self._settings.with_size(size))

    # --- Derivation ---

    def _derive_metadata(self):
        """Metadata (and target size) follow the crop when one is active, else the source."""
        if self._crop is not None:
            if self._display_ratio <= 0:
                return
            dims = map_to_source(self._crop, self._display_ratio, self._natural).size
        elif self._natural is not None:
            dims = self._natural
        else:
            return

        self._metadata = dims
        self._settings = self._settings.with_size(dims)
        self.metadata_changed.emit(dims)
        self.settings_changed.emit(self._settings)

    def _update_settings(self, settings: EditorSettings):
        if settings == self._settings:
            return
        self._settings = settings
        self.settings_changed.emit(settings)
        self.recompute()

    def recompute(self):
        """Start a conversion for the current state; older runs become stale."""
        if self._source is None:
            return
        self._generation += 1
        config = self.current_config()
        logger.debug("Starting conversion #%d: %s", self._generation, config)

        thread = ConvertThread(self._generation, self._source, config, convert=self._convert)
        thread.result_ready.connect(self._on_result)
        thread.finished.connect(self._on_thread_finished)
        self._threads.add(thread)
        thread.start()

    @pyqtSlot(object)
    def _on_result(self, outcome: ConversionOutcome):
        if outcome.generation != self._generation:
            logger.debug("Discarding stale conversion #%d (current #%d)", outcome.generation, self._generation)
            return
        if outcome.error is not None:
            logger.warning("Conversion #%d failed: %s", outcome.generation, outcome.error)
            self.conversion_failed.emit(outcome.error)
            return
        self._output = outcome.image
        self.output_changed.emit(outcome.image)

    @pyqtSlot()
    def _on_thread_finished(self):
        thread = self.sender()
        self._threads.discard(thread)
        thread.deleteLater()

    # --- Lifecycle ---

    def wait_for_idle(self, msecs: int = 5000) -> bool:
        """Block until every running conversion finished and deliver their results."""
        for thread in list(self._threads):
            if not thread.wait(msecs):
                return False
        QCoreApplication.processEvents()
        return True

    def shutdown(self):
        """Stop debouncing and wait for in-flight conversions (call before teardown)."""
        self._cancel_pending_edits()
        for thread in list(self._threads):
            thread.wait()
        self._threads.clear()
