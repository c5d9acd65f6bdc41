# ============================================
# file: src/aid_extractor/cli.py
# ============================================
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .controllers.extract_controller import ExtractController
from .utils.config_loader import ConfigError, get_nested_config, load_config
from .utils.configure_logging import configure_logger
from .utils.json_service import to_json
from .model import SEVERITY_ORDER

logger = logging.getLogger(__name__)

extract_help_text = """
  aid-extract FILE [FILE ...] [--workers <N>] [--config <PATH>] [--output <PATH>]
              [--indent <N>] [--fail-on WARNING|INFO] [--no-progress]
      Extracts the aid-* semantic tree and diagnostics of each HTML file and
      prints them as JSON (or writes them to --output).
""".strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aid-extract",
        description="Extract aid-* semantic annotations from HTML files.",
        epilog=extract_help_text,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("files", metavar="FILE", nargs="+", help="HTML files to extract.")
    parser.add_argument("--workers", type=int, default=None,
                        help="Number of parallel processes (default: batch.workers or CPU count).")
    parser.add_argument("--config", type=str, default=None,
                        help="Settings JSON file (default: packaged settings.json).")
    parser.add_argument("--output", type=str, default=None, help="Write JSON to this file instead of stdout.")
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2).")
    parser.add_argument("--fail-on", choices=sorted(SEVERITY_ORDER), default=None,
                        help="Exit with 1 when a diagnostic of this severity (or worse) is found.")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        pargs = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    try:
        config = load_config(pargs.config, required=pargs.config is not None)
    except ConfigError as e:
        configure_logger("WARNING")
        logger.error("%s", e)
        return 2
    configure_logger(get_nested_config("debug.level", "WARNING", config))

    missing = [f for f in pargs.files if not Path(f).is_file()]
    if missing:
        for f in missing:
            logger.error("File not found: %s", f)
        return 2

    workers = pargs.workers or get_nested_config("batch.workers", None, config)
    controller = ExtractController(config)
    stats = controller.extract_files(pargs.files, workers=workers, show_progress=not pargs.no_progress)

    payload = to_json(stats["results"], indent=pargs.indent)
    if pargs.output:
        Path(pargs.output).write_text(payload + "\n", encoding="utf-8")
        logger.info("Results written to %s", pargs.output)
    else:
        print(payload)

    if stats["failed"]:
        return 1

    if pargs.fail_on:
        threshold = SEVERITY_ORDER[pargs.fail_on]
        for item in stats["results"]:
            for diag in item["result"]["diagnostics"]:
                if SEVERITY_ORDER.get(diag["severity"], 0) >= threshold:
                    return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
