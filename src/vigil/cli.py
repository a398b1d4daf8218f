"""CLI entry point for Vigil."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from vigil import __version__
from vigil.config import load_config
from vigil.errors import VigilError
from vigil.output import render_result
from vigil.scanner import scan_file, scan_url


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run a Vigil scan."""
    parser = argparse.ArgumentParser(
        prog="vigil",
        description="Vigil - file and URL reputation checker",
    )
    parser.add_argument("file", metavar="FILE", nargs="?", help="The file to analyze")
    parser.add_argument("-u", "--url", default=None, help="Analyze a URL instead of a file")
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to config YAML file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a formatted report",
    )
    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Skip the AI narrative",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging and provider links",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args(argv)

    if bool(args.file) == bool(args.url):
        parser.error("give either FILE or --url")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.no_color:
        from vigil.output import console
        console.no_color = True

    try:
        if args.url:
            url = args.url
            if not url.startswith(("http://", "https://")):
                url = f"https://{url}"
            result = scan_url(url, config, use_ai=not args.no_ai)
        else:
            path = Path(args.file)
            try:
                content = path.read_bytes()
            except OSError as e:
                print(f"Error reading {path}: {e}", file=sys.stderr)
                sys.exit(1)
            result = scan_file(content, path.name, config, use_ai=not args.no_ai)
    except VigilError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        render_result(result, verbose=args.verbose)


if __name__ == "__main__":
    main()
