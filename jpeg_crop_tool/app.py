"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m jpeg_crop_tool
    jpeg-crop-tool                               (after pip install)
    jpeg-crop-tool --quick a.png b.webp -o out/  (no window)
"""

import argparse
import logging
import sys
from pathlib import Path

from jpeg_crop_tool.config import APP_NAME, IMAGE_EXTENSIONS, QUICK_QUALITY, THUMBNAIL_SIZE
from jpeg_crop_tool.errors import ConversionError
from jpeg_crop_tool.quick import quick_convert

logger = logging.getLogger(__name__)

DARK_STYLESHEET = """
    QMainWindow { background: #2b2b2b; }
    QWidget { background: #2b2b2b; color: #ddd; font-size: 10pt; }
    QTabWidget::pane { border: 1px solid #444; }
    QTabBar::tab { background: #333; padding: 6px 14px; border: 1px solid #444; }
    QTabBar::tab:selected { background: #3a6ea5; }
    QGroupBox { border: 1px solid #555; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QPushButton { background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #4a4a4a; }
    QPushButton:pressed { background: #2a2a2a; }
    QPushButton:checked { background: #3a6ea5; border-color: #5a8ec5; }
    QPushButton:disabled { color: #666; }
    QSpinBox, QComboBox { background: #1e1e1e; border: 1px solid #555; border-radius: 4px; padding: 2px 4px; }
    QStatusBar { background: #333; border-top: 1px solid #444; }
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description="Crop, resize and re-encode images as JPEG.")
    parser.add_argument(
        "--quick", nargs="+", type=Path, metavar="IMAGE",
        help=f"convert images to {THUMBNAIL_SIZE}px / quality {QUICK_QUALITY} JPEGs without opening a window",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=Path.cwd(),
        help="output folder for --quick (default: current directory)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def run_quick(paths: list[Path], output_dir: Path) -> int:
    """Quick-convert every path; returns the process exit code."""
    failures = 0
    for path in paths:
        if path.suffix.lower() not in IMAGE_EXTENSIONS:
            logger.warning("Skipping %s: unsupported extension", path)
            failures += 1
            continue
        try:
            out_path = quick_convert(path, output_dir)
        except (ConversionError, OSError) as e:
            logger.error("Failed to convert %s: %s", path, e)
            failures += 1
            continue
        print(out_path)
    return 1 if failures else 0


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.quick:
        sys.exit(run_quick(args.quick, args.output))

    # Qt is only needed for the window
    from PyQt6.QtWidgets import QApplication
    from jpeg_crop_tool.main_window import MainWindow

    app = QApplication(sys.argv[:1])
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
