"""Main module for the image derivatives CLI."""

import argparse
import json
import os
import sys
import uuid
from typing import Dict

from pydantic import ValidationError

from .audit import audit_directory
from .core import ConfigurationError, PipelineConfig, PipelineFactory, SourceObjectRef
from .core.config import DEFAULT_RATIO_LABELS
from .core.factories import LoggerFactory
from .core.imaging import create_image_tool
from .core.services import AspectClassifier, MetadataProber


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-derivatives",
        description="Image derivatives - resized versions of uploaded S3 photos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Produce the configured versions of one uploaded photo
  DESTINATION_BUCKET=photos-public image-derivatives process \\
      --bucket photos-private --key uploads/photo.jpg

  # Check aspect-group counts of processed photos, in batches of 3
  image-derivatives audit ./processed --batch-size 3

  # Show version
  image-derivatives version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Run the pipeline for a single source object"
    )
    process_parser.add_argument("--bucket", required=True, help="Source S3 bucket")
    process_parser.add_argument("--key", required=True, help="Source S3 object key")
    process_parser.add_argument(
        "--destination-bucket", default=None, help="Overrides DESTINATION_BUCKET"
    )
    process_parser.add_argument(
        "--versions", default=None, help='Overrides IMAGE_VERSIONS, e.g. "thumbnail=400"'
    )
    process_parser.add_argument(
        "--image-tool",
        choices=["magick", "pillow"],
        default=None,
        help="Overrides IMAGE_TOOL",
    )
    process_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    audit_parser = subparsers.add_parser(
        "audit", help="Count processed photos per aspect group"
    )
    audit_parser.add_argument("path", help="Directory of photos")
    audit_parser.add_argument(
        "--batch-size", type=int, default=3, help="Group size to divide by (default: 3)"
    )
    audit_parser.add_argument(
        "--pattern", default="*.jpg", help="Filename glob (default: *.jpg)"
    )
    audit_parser.add_argument(
        "--image-tool",
        choices=["magick", "pillow"],
        default="magick",
        help="Backend used to probe photos (default: magick)",
    )
    audit_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")
    return parser


def run_process(args: argparse.Namespace) -> int:
    logger = LoggerFactory.create_logger(level="DEBUG" if args.debug else None)

    env: Dict[str, str] = dict(os.environ)
    if args.destination_bucket:
        env["DESTINATION_BUCKET"] = args.destination_bucket
    if args.versions:
        env["IMAGE_VERSIONS"] = args.versions
    if args.image_tool:
        env["IMAGE_TOOL"] = args.image_tool

    try:
        config = PipelineConfig.from_env(env)
        source = SourceObjectRef(bucket_name=args.bucket, object_key=args.key)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    except ValidationError as e:
        logger.error(f"Invalid source object: {e}")
        return 2

    pipeline = PipelineFactory.create_pipeline(config, logger=logger)
    result = pipeline.run(source, correlation_id=str(uuid.uuid4()))
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0 if result.succeeded else 1


def run_audit(args: argparse.Namespace) -> int:
    logger = LoggerFactory.create_logger(level="DEBUG" if args.debug else "WARNING")
    prober = MetadataProber(create_image_tool(args.image_tool, logger), logger)
    classifier = AspectClassifier(DEFAULT_RATIO_LABELS)

    try:
        report = audit_directory(
            args.path,
            prober,
            classifier,
            logger,
            batch_size=args.batch_size,
            pattern=args.pattern,
        )
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 2

    for line in report.format_lines():
        print(line)
    return 0


def main() -> None:
    """
    Entry point for the command-line interface.

    ``process`` runs one invocation locally with environment configuration,
    ``audit`` reports aspect-group counts of a local directory.
    """
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args()

    if args.command == "process":
        sys.exit(run_process(args))

    elif args.command == "audit":
        sys.exit(run_audit(args))

    elif args.command == "version":
        print("Image Derivatives CLI")
        print("Version 0.1.0")
        print("Resized, aspect-classified versions of uploaded photos")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
