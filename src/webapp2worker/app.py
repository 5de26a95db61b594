# src/webapp2worker/app.py
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from webapp2worker.controllers.convert_controller import ConvertController
from webapp2worker.errors import ConversionError
from webapp2worker.managers.config_manager import config_manager
from webapp2worker.services.message_protocol_service import MessageProtocol
from webapp2worker.services.resource_fetch_service import ResourceFetchService
from webapp2worker.utils.configure_logging import configure_logger
from webapp2worker.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

help_text = """
  convert <input> [<input> ...] [-o <path>] [--stdout]
      Converts HTML documents (paths or URLs) into self-contained worker scripts.
      With several inputs, -o names a directory.
  message <json>
      Prints the runtime message that delivers <json> to a generated worker.
""".strip()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webapp2worker",
        description="Convert a static web page into a script that runs inside a Web Worker.",
        epilog=help_text,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subs = parser.add_subparsers(dest="subcommand", help="Sub-command help")

    p_convert = subs.add_parser("convert", help="Convert HTML documents.")
    p_convert.add_argument("inputs", metavar="INPUT", nargs="+", help="HTML file path or URL.")
    p_convert.add_argument("-o", "--output", type=str, default=None,
                           help="Output file (one input) or directory (several inputs).")
    p_convert.add_argument("--stdout", action="store_true", help="Print the result instead of writing files.")

    p_message = subs.add_parser("message", help="Encode a runtime message.")
    p_message.add_argument("payload", metavar="JSON", help="JSON value to send to the worker.")
    return parser


async def _convert_all(inputs: List[str], output: Optional[str], to_stdout: bool) -> int:
    suffix = config_manager.get_nested("output.suffix", ".worker.js")
    output_dir: Optional[Path] = None
    output_file: Optional[Path] = None
    if output:
        if len(inputs) > 1:
            output_dir = Path(output)
        else:
            output_file = Path(output)

    failures = 0
    async with ResourceFetchService(config_manager.get_all()) as fetcher:
        controller = ConvertController(
            fetcher,
            config_manager.runtime_settings(),
            parser_features=config_manager.get_nested("parser.features", "html5lib"),
        )

        iterator = inputs if len(inputs) == 1 else tqdm(inputs, desc="Converting", unit="doc")
        for source in iterator:
            try:
                result = await controller.convert(source)
            except ConversionError as e:
                failures += 1
                logger.debug("Conversion of %s failed", source, exc_info=True)
                print(f"❌ {source}: {e}", file=sys.stderr)
                continue

            if to_stdout:
                sys.stdout.write(result)
                continue

            target = output_file or PathUtils.get_output_path(source, suffix, output_dir)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(result, encoding="utf-8")
            except OSError as e:
                failures += 1
                logger.debug("Writing %s failed", target, exc_info=True)
                print(f"❌ {source}: cannot write {target}: {e}", file=sys.stderr)
                continue
            print(f"✅ {source} -> {target}")

    return 1 if failures else 0


def handle_convert(pargs: argparse.Namespace) -> int:
    return asyncio.run(_convert_all(pargs.inputs, pargs.output, pargs.stdout))


def handle_message(pargs: argparse.Namespace) -> int:
    try:
        value = json.loads(pargs.payload)
    except json.JSONDecodeError as e:
        print(f"❌ Invalid JSON: {e}", file=sys.stderr)
        return 1

    settings = config_manager.runtime_settings()
    print(MessageProtocol(settings.message_marker, settings.max_key_depth).encode_message(value))
    return 0


def run(args: List[str]) -> int:
    parser = _build_parser()
    if not args:
        parser.print_help()
        return 0

    try:
        pargs = parser.parse_args(args)
    except SystemExit as e:
        return int(e.code or 0)

    configure_logger(config_manager.get_nested("debug.level", "WARNING"), verbose=pargs.verbose)

    if pargs.subcommand == "convert":
        return handle_convert(pargs)
    if pargs.subcommand == "message":
        return handle_message(pargs)

    parser.print_help()
    return 1


def main() -> None:
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
