"""
Photo Caption Helper - caption box locator
Main entry point for the command line
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import Config, get_config
from screen import (
    CaptionFinder,
    CaptionFinderError,
    CaptionLocator,
    RegionOutOfBoundsError,
    ScreenCapture,
    ScreenCaptureError,
    load_template,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def setup_logging(verbose: bool = False, log_path: str = "") -> None:
    """Configure the root logger for console and optional file output"""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    if not root.handlers:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    if log_path:
        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(formatter)
        root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo-caption-helper",
        description="Locate the photo caption box on screen by template matching"
    )
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    locate = commands.add_parser("locate", help="Find the caption box on the current screen")
    locate.add_argument("--debug-crop", help="Write the searched region to this image file")
    locate.add_argument("--repeat", type=int, default=1, help="Number of searches to run")

    grab = commands.add_parser("grab-template", help="Save a screen rectangle as the template")
    grab.add_argument("x", type=int)
    grab.add_argument("y", type=int)
    grab.add_argument("width", type=int)
    grab.add_argument("height", type=int)
    grab.add_argument("--output", type=Path, help="Defaults to the configured template path")

    return parser


def run_locate(config: Config, args: argparse.Namespace) -> int:
    """Load the template, search the screen and print the result"""
    ok, errors = config.validate()
    if not ok:
        for error in errors:
            logger.error("Invalid configuration: %s", error)
        return EXIT_ERROR

    try:
        template = load_template(config.resolve_template_path())
    except CaptionFinderError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    locator = CaptionLocator(
        template,
        config.search_region(),
        config.locator_settings(),
        debug_path=args.debug_crop or config.debug_crop_path or None
    )
    finder = CaptionFinder(locator, monitor=config.monitor)

    result = None
    for _ in range(max(1, args.repeat)):
        try:
            result = finder.find()
        except RegionOutOfBoundsError as e:
            logger.error("Check the search area in the config: %s", e)
            return EXIT_ERROR

        if result:
            line = f"Found at ({result.x}, {result.y}) confidence {result.confidence * 100:.2f}%"
            if config.display_scale != 1:
                lx, ly = result.logical_point(config.display_scale)
                line += f" logical ({lx}, {ly})"
            print(line)
        elif result.error:
            print(f"Caption box not found: {result.error}")
        else:
            print(f"Caption box not found (best confidence {result.confidence * 100:.2f}%)")

    return EXIT_OK if result else EXIT_NOT_FOUND


def run_grab_template(config: Config, args: argparse.Namespace) -> int:
    """Capture a screen rectangle and store it as the caption template"""
    if args.width <= 0 or args.height <= 0:
        logger.error("Template width and height must be positive")
        return EXIT_ERROR

    output = args.output or config.resolve_template_path()
    capture = ScreenCapture()

    try:
        image = capture.capture_region(args.x, args.y, args.width, args.height)
        capture.save_image(image, str(output))
    except ScreenCaptureError as e:
        logger.error("%s", e)
        return EXIT_ERROR
    except OSError as e:
        logger.error("Could not save template to %s: %s", output, e)
        return EXIT_ERROR

    print(f"Template saved to {output} ({args.width}x{args.height})")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    config = Config.load(args.config) if args.config else get_config()
    setup_logging(args.verbose, config.log_path)

    if args.command == "locate":
        return run_locate(config, args)
    return run_grab_template(config, args)


if __name__ == "__main__":
    sys.exit(main())
