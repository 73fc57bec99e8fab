"""CLI entry point for browsing and editing any snapweb address.

Examples:
    ```bash
    python -m snapweb ls file:/tmp
    python -m snapweb cat "file:/tmp/archive.zip!/docs/readme.txt"
    python -m snapweb stat http://example.com/index.html
    python -m snapweb put local:/notes/todo.txt ./todo.txt
    python -m snapweb rm local:/notes/todo.txt --config snapweb.yaml
    ```
"""

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from snapweb.core.exceptions import ConfigurationError, ResponseException, SiteNotFoundError
from snapweb.core.file import WebFile
from snapweb.core.logger import Logger, StructuredFormatter
from snapweb.core.web import Web
from snapweb.models.url import MalformedURLError


logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="snapweb",
        description="snapweb virtual file system",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Registry config path (default: built-in defaults)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: logging.level from --config, else WARNING)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    ls = commands.add_parser("ls", help="List a directory")
    ls.add_argument("url")

    cat = commands.add_parser("cat", help="Write a file's contents to stdout")
    cat.add_argument("url")

    stat = commands.add_parser("stat", help="Show a file's metadata")
    stat.add_argument("url")

    put = commands.add_parser("put", help="Save a local file (or stdin) at an address")
    put.add_argument("url")
    put.add_argument("source", help="Local file path, or '-' for stdin")

    mkdir = commands.add_parser("mkdir", help="Create a directory")
    mkdir.add_argument("url")

    rm = commands.add_parser("rm", help="Delete a file or directory tree")
    rm.add_argument("url")

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` on the root handler so that all
    log output is unified as ``level name message key=value ...``.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _require_file(web: Web, url: str) -> WebFile:
    web.require_site(url)
    file = web.get_file(url)
    if file is None:
        raise FileNotFoundError(f"No such file: {url}")
    return file


def cmd_ls(web: Web, args: argparse.Namespace) -> int:
    file = _require_file(web, args.url)
    children = file.get_files() if file.is_dir else [file]
    for child in children:
        print(child.name + ("/" if child.is_dir else ""))
    return 0


def cmd_cat(web: Web, args: argparse.Namespace) -> int:
    file = _require_file(web, args.url)
    if file.is_dir:
        logger.error("is_a_directory", url=args.url)
        return 1
    sys.stdout.buffer.write(file.get_bytes() or b"")
    sys.stdout.buffer.flush()
    return 0


def cmd_stat(web: Web, args: argparse.Namespace) -> int:
    file = _require_file(web, args.url)
    print(f"url={file.url_string}")
    print(f"type={'directory' if file.is_dir else 'file'}")
    print(f"data_type={file.data_type}")
    print(f"size={file.size}")
    print(f"modified_time={file.modified_time}")
    return 0


def cmd_put(web: Web, args: argparse.Namespace) -> int:
    data = sys.stdin.buffer.read() if args.source == "-" else Path(args.source).read_bytes()
    file = web.create_file(args.url, False)
    if file is None:
        raise SiteNotFoundError(args.url)
    file.set_bytes(data)
    file.save()
    file.site.flush()
    logger.info("file_put", url=file.url_string, size=len(data))
    return 0


def cmd_mkdir(web: Web, args: argparse.Namespace) -> int:
    directory = web.create_file(args.url, True)
    if directory is None:
        raise SiteNotFoundError(args.url)
    directory.save()
    return 0


def cmd_rm(web: Web, args: argparse.Namespace) -> int:
    file = _require_file(web, args.url)
    file.delete()
    logger.info("file_removed", url=file.url_string)
    return 0


COMMANDS: dict[str, Callable[[Web, argparse.Namespace], int]] = {
    "ls": cmd_ls,
    "cat": cmd_cat,
    "stat": cmd_stat,
    "put": cmd_put,
    "mkdir": cmd_mkdir,
    "rm": cmd_rm,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, build the registry, run one command."""
    args = parse_args(argv)
    setup_logging(args.log_level or "WARNING")

    try:
        web = Web.from_yaml(args.config) if args.config else Web()
        if args.config and args.log_level is None:
            logging.root.setLevel(web.config.logging.level)
        return COMMANDS[args.command](web, args)
    except ConfigurationError as e:
        logger.error("config_invalid", error=str(e))
        return 2
    except (SiteNotFoundError, MalformedURLError, FileNotFoundError) as e:
        logger.error("bad_address", error=str(e))
        return 2
    except ResponseException as e:
        logger.error("request_failed", code=int(e.code), error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
