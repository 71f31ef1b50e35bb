from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .build import CONTENT_DIR, DEFAULT_CONFIG, OUTPUT_DIR, STATIC_DIR, TEMPLATES_DIR, build_site
from .errors import BuildError
from .scaffold import create_project
from .server import DEFAULT_PORT, serve

logger = logging.getLogger("pagewright")


def add_common_options(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    # Subparsers repeat the options with SUPPRESS defaults so they can be given
    # on either side of the command without clobbering each other.
    parser.add_argument(
        "-r",
        "--root",
        default=argparse.SUPPRESS if suppress else ".",
        help="Directory to use as root of project (default: .)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=argparse.SUPPRESS if suppress else DEFAULT_CONFIG,
        help=f"Path to configuration file, relative to the root (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Enable debug logging.",
    )


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagewright", description="A fast & simple static site generator.")
    add_common_options(parser)
    commands = parser.add_subparsers(dest="command", metavar="<command>", required=True)

    build = commands.add_parser("build", help="Delete the output directory if there is one and build the site.")
    add_common_options(build, suppress=True)

    serve_cmd = commands.add_parser(
        "serve", help=f"Build the site, rebuild on changes and serve it on http://localhost:{DEFAULT_PORT}."
    )
    add_common_options(serve_cmd, suppress=True)
    serve_cmd.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to listen on.")

    new = commands.add_parser("new", help="Create a new site structure in the given directory.")
    add_common_options(new, suppress=True)
    new.add_argument("directory", nargs="?", help="Target directory (default: --root).")
    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def run(args: argparse.Namespace) -> int:
    root = Path(args.root)
    if args.command == "new":
        create_project(Path(args.directory) if args.directory else root)
        return 0

    build_site(root, args.config)
    if args.command == "serve":

        def rebuild() -> None:
            try:
                build_site(root, args.config)
            except BuildError as exc:
                logger.error("%s", exc)

        watch = [root / CONTENT_DIR, root / STATIC_DIR, root / TEMPLATES_DIR]
        serve(root / OUTPUT_DIR, watch, rebuild, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = make_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return run(args)
    except BuildError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
