"""Command-line interface for faceoverlay."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from faceoverlay.errors import ConfigError, DetectorInitError, FaceOverlayError
from faceoverlay.types import Size

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("absl", "mediapipe", "urllib3")


def suppress_thirdparty_noise() -> None:
    """Quiet Qt/OpenCV/TFLite chatter for cleaner CLI output."""
    os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false;qt.qpa.*=false")
    os.environ.setdefault("OPENCV_LOG_LEVEL", "ERROR")
    os.environ.setdefault("GLOG_minloglevel", "2")
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")


def configure_log_levels() -> None:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_canvas(value: str) -> Size:
    """Parse ``WIDTHxHEIGHT`` into a Size."""
    try:
        w, h = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Canvas must look like 480x800, got {value!r}"
        ) from None
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"Canvas size must be positive, got {value!r}")
    return Size(w, h)


def _add_overlay_args(parser):
    """Add --skin, --canvas, --config args to a parser."""
    parser.add_argument(
        "--skin", choices=["badge", "plain"], default=None,
        help="Overlay skin (default: badge)",
    )
    parser.add_argument(
        "--canvas", type=parse_canvas, metavar="WxH",
        help="Canvas size, e.g. 480x800 (default: upright frame size)",
    )
    parser.add_argument(
        "--config", type=str, metavar="PATH",
        help="Path to app config YAML file",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="faceoverlay",
        description="FaceOverlay - live face detection overlay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  faceoverlay live                          # Front camera, badge skin
  faceoverlay live --lens back --preset high
  faceoverlay live --canvas 480x800         # Portrait canvas (aspect-fill crop)
  faceoverlay image photo.jpg -o out.jpg    # Annotate a still image
  faceoverlay info --config app.yaml        # Show resolved configuration
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # live command
    live_parser = subparsers.add_parser(
        "live",
        help="Show the camera preview with the face overlay",
        description="Open a camera window and draw detected faces live. ESC or q quits.",
    )
    live_parser.add_argument("--camera", type=int, default=None, help="Camera index (default: 0)")
    live_parser.add_argument(
        "--preset", choices=["low", "medium", "high", "very_high"], default=None,
        help="Resolution preset (default: medium)",
    )
    live_parser.add_argument(
        "--lens", choices=["front", "back", "external"], default=None,
        help="Lens direction; front is mirrored (default: front)",
    )
    live_parser.add_argument(
        "--rotation", type=int, choices=[0, 90, 180, 270], default=None,
        help="Sensor rotation in degrees (default: 0)",
    )
    live_parser.add_argument("--no-hud", action="store_true", help="Hide the face count panel")
    _add_overlay_args(live_parser)

    # image command
    image_parser = subparsers.add_parser(
        "image",
        help="Annotate a still image",
        description="Detect faces in an image file and write the overlay to a new file.",
    )
    image_parser.add_argument("path", help="Path to image file")
    image_parser.add_argument("--output", "-o", type=str, required=True, help="Output image path")
    image_parser.add_argument("--mirror", action="store_true", help="Mirror like a front camera")
    _add_overlay_args(image_parser)

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show resolved configuration and available components",
    )
    info_parser.add_argument("--config", type=str, metavar="PATH", help="Path to app config YAML file")

    return parser


def load_config(args):
    """Build an AppConfig from ``--config`` plus command-line overrides."""
    from faceoverlay.config import AppConfig

    config_path = getattr(args, "config", None)
    data = AppConfig.from_yaml(config_path).to_dict() if config_path else AppConfig().to_dict()

    overrides = {
        ("camera", "index"): getattr(args, "camera", None),
        ("camera", "preset"): getattr(args, "preset", None),
        ("camera", "lens_direction"): getattr(args, "lens", None),
        ("camera", "sensor_rotation"): getattr(args, "rotation", None),
        ("display", "skin"): getattr(args, "skin", None),
    }
    canvas = getattr(args, "canvas", None)
    if canvas is not None:
        overrides[("display", "canvas_width")] = int(canvas.width)
        overrides[("display", "canvas_height")] = int(canvas.height)
    if getattr(args, "no_hud", False):
        overrides[("display", "show_hud")] = False

    for (section, key), value in overrides.items():
        if value is not None:
            data[section][key] = value

    return AppConfig.from_dict(data)


def run_live(args) -> int:
    from faceoverlay.app import OverlayApp

    config = load_config(args)
    app = OverlayApp(config)
    app.run()
    if app.error:
        print(f"Error: {app.error}", file=sys.stderr)
        return 1
    return 0


def run_image(args, backend=None) -> int:
    import cv2

    from faceoverlay.app import annotate_image
    from faceoverlay.backends import create_backend
    from faceoverlay.skins import get_skin

    config = load_config(args)

    image = cv2.imread(args.path)
    if image is None:
        print(f"Error: Cannot read image: {args.path}", file=sys.stderr)
        return 1

    try:
        backend = backend or create_backend(config.detector.backend, config.detector.to_options())
        backend.initialize()
    except Exception as e:
        raise DetectorInitError(f"Detector failed to initialize: {e}") from e
    try:
        canvas, faces = annotate_image(
            image,
            backend,
            skin=get_skin(config.display.skin),
            canvas_size=config.display.canvas_size,
            mirrored=args.mirror,
        )
    finally:
        backend.cleanup()

    if not cv2.imwrite(args.output, canvas):
        print(f"Error: Cannot write image: {args.output}", file=sys.stderr)
        return 1

    print(f"Faces detected: {len(faces)}")
    print(f"Saved: {args.output}")
    return 0


def run_info(args) -> int:
    import yaml

    from faceoverlay.backends import BACKEND_NAMES
    from faceoverlay.skins import SKINS

    config = load_config(args)

    print("FaceOverlay - System Information")
    print("=" * 60)

    print("\n[Components]")
    print("-" * 60)
    print(f"  Backends: {', '.join(BACKEND_NAMES)}")
    print(f"  Skins:    {', '.join(sorted(SKINS))}")

    print("\n[Configuration]")
    print("-" * 60)
    print(yaml.safe_dump(config.to_dict(), sort_keys=False).rstrip())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    suppress_thirdparty_noise()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)
        configure_log_levels()

    commands = {
        "live": run_live,
        "image": run_image,
        "info": run_info,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FaceOverlayError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
