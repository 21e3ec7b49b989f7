import argparse
import logging
import os
import sys

from .core.commands import Expander
from .core.config import get_settings
from .core.generators import FillerRegistry


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        # stdout carries the expanded source
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


logger = logging.getLogger(__name__)


def main():
    """Main entry point for portrait."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Portrait - fill Rust trait impls from captured traits")
    parser.add_argument(
        "files",
        nargs="*",
        help="Rust source files, expanded in order in one session"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Write expanded files here instead of printing them"
    )
    parser.add_argument(
        "--namespace",
        type=str,
        default=settings.attribute_namespace,
        help="Path prefix of the attributes (default: %(default)s)"
    )
    parser.add_argument(
        "--debug-print",
        action="store_true",
        default=settings.debug_print,
        help="Log every filler output"
    )
    parser.add_argument(
        "--list-fillers",
        action="store_true",
        help="List registered fillers and exit"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.list_fillers:
        for filler in FillerRegistry.list_fillers():
            print(f"{filler['name']:<20} {filler['kind']:<8} {filler['description']}")
        return 0

    if not args.files:
        parser.error("no input files")

    settings = settings.model_copy(update={
        "attribute_namespace": args.namespace,
        "debug_print": args.debug_print,
        "log_level": args.log_level,
    })
    expander = Expander(settings=settings)

    failed = False
    for file_path in args.files:
        try:
            result = expander.expand_file(file_path)
        except OSError as e:
            logger.error(f"Cannot read {file_path}: {e}")
            failed = True
            continue

        for diagnostic in result.diagnostics:
            print(diagnostic, file=sys.stderr)
        failed = failed or not result.ok

        if args.output_dir:
            os.makedirs(args.output_dir, exist_ok=True)
            out_path = os.path.join(args.output_dir, os.path.basename(file_path))
            with open(out_path, "w", encoding="utf-8") as f:
                f.write(result.output)
            logger.info(f"Wrote {out_path}")
        else:
            sys.stdout.write(result.output)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
