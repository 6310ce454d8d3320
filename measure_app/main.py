"""Command-line entry point: measure objects in one or more images."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .backends.yolo_backend import YoloBackend
from .config.settings import Config, load_config
from .core.exceptions import ApplicationError, UnknownReferenceError
from .core.logging_config import configure_logging
from .core.reference_catalog import default_catalog
from .services.detection_adapter import DetectionAdapter
from .services.measurement_session import MeasurementSession
from .services.report_service import export_cycle_json, format_cycle_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="measure-objects",
        description="Measure real-world sizes of objects in images using a reference object.",
    )
    parser.add_argument("images", nargs="*", help="Image files to measure, processed in order")
    parser.add_argument("--reference", help="Reference object id (see --list-references)")
    parser.add_argument("--model", help="YOLO weights file or model name")
    parser.add_argument("--config", default="config.json", help="Path to config.json")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    units = parser.add_mutually_exclusive_group()
    units.add_argument("--imperial", dest="use_metric", action="store_false", default=None,
                       help="Report sizes in inches")
    units.add_argument("--metric", dest="use_metric", action="store_true",
                       help="Report sizes in centimeters")
    parser.add_argument("--recalibrate", action="store_true",
                        help="Calibrate from every image instead of only the first")
    parser.add_argument("--export", action="store_true",
                        help="Write each result as JSON to the results directory")
    parser.add_argument("--list-references", action="store_true",
                        help="List available reference objects and exit")
    return parser


def list_references() -> str:
    catalog = default_catalog()
    return "\n".join(f"{spec.id:<12} {catalog.describe(spec.id)}" for spec in catalog)


async def run(config: Config, images: List[str], use_metric: bool,
              export: bool = False, recalibrate: bool = False,
              session: Optional[MeasurementSession] = None) -> int:
    """Process ``images`` through one session; returns the exit code."""
    if session is None:
        default_catalog().lookup(config.reference_object)
        backend = YoloBackend(config.to_dict())
        backend.load_model(config.preferred_model)
        adapter = DetectionAdapter(backend, config.detection_confidence_threshold,
                                   config.detection_iou_threshold)
        session = MeasurementSession.from_config(config, adapter)

    exit_code = 0
    for image in images:
        if recalibrate:
            session.reset_calibration()
        try:
            result = await session.process_image(image)
        except UnknownReferenceError:
            raise
        except ApplicationError as e:
            logger.error(f"Failed to measure {image}: {e}")
            print(f"{image}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        print(f"== {image}")
        print(format_cycle_report(result, use_metric))
        print()
        if export:
            path = export_cycle_json(result, config.results_export_dir)
            print(f"Saved: {path}")
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_references:
        print(list_references())
        return 0
    if not args.images:
        print("No images given (see --help)", file=sys.stderr)
        return 2

    config = load_config(args.config, args.env_file)
    if args.reference:
        config.reference_object = args.reference
    if args.model:
        config.preferred_model = args.model
    use_metric = config.use_metric if args.use_metric is None else args.use_metric

    configure_logging(
        log_level=config.log_level,
        log_dir=config.log_dir,
        enable_file_logging=config.log_to_file,
        structured_logging=config.structured_logging,
    )

    try:
        return asyncio.run(run(config, args.images, use_metric, args.export, args.recalibrate))
    except UnknownReferenceError as e:
        print(f"{e}. Available: {', '.join(default_catalog().ids())}", file=sys.stderr)
        return 1
    except ApplicationError as e:
        logger.error(f"Measurement failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
