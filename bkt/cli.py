"""Command-line interface for bkt.

Provides argument parsing, logging setup and the main entry point that
dispatches each action and turns errors into exit codes.
"""

import argparse
import logging
import os
import sys
import time
from typing import Callable, Optional

from rich.console import Console
from rich.logging import RichHandler

from bkt import __version__
from bkt.batch import BatchUploader, count_files
from bkt.config import SET_CONFIG_HINT, ConfigError, ConfigStore, default_config_path
from bkt.models import Profile, UploadTask
from bkt.progress import ConsoleReporter, RichProgressDisplay
from bkt.progress.console import make_console
from bkt.s3_client import build_s3_client
from bkt.target import TargetError, resolve_target
from bkt.upload import UploadError, upload_file

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_UPLOAD_FAILED = 1
EXIT_ERROR = 2

ACTIONS = ["get", "put", "rm", "set", "set-config", "list-config", "count"]


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number, got '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="bkt",
        description="Upload files and folders to S3-compatible object storage",
    )

    parser.add_argument(
        "action",
        type=str.lower,
        choices=ACTIONS,
        help="Action to run: put, set, list-config or count (get and rm are not implemented)",
    )

    parser.add_argument(
        "-s", "--source",
        help="File you want to upload to the bucket",
    )

    parser.add_argument(
        "-d", "--destination",
        help="Location (key or key prefix) in the bucket",
    )

    parser.add_argument(
        "-f", "--folder",
        help="Recursively upload files in this folder",
    )

    parser.add_argument(
        "-c", "--config",
        nargs=5,
        metavar=("ACCESS_KEY", "SECRET_KEY", "BUCKET", "ENDPOINT", "REGION"),
        help=(
            "Profile values for 'set'. Use '-' for ENDPOINT to use the AWS "
            "endpoint of REGION, or '-' for REGION with an S3-compatible ENDPOINT"
        ),
    )

    parser.add_argument(
        "-b", "--bucket",
        metavar="BUCKET_NAME",
        help="Bucket name, overrides the bucket set in the profile",
    )

    parser.add_argument(
        "-t", "--content-type",
        help="Content type of the uploaded file, e.g. image/jpeg or application/pdf",
    )

    parser.add_argument(
        "-l", "--limit",
        type=positive_int,
        metavar="N",
        help="Upload at most N files when uploading a folder",
    )

    parser.add_argument(
        "-w", "--worker",
        type=positive_int,
        metavar="N",
        help="Upload a folder with N concurrent workers",
    )

    parser.add_argument(
        "--config-path",
        metavar="PATH",
        help="Profile file to use (default: $BKT_CONFIG or ~/.bkt/config.json)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress informational lines, show only results",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v for info, -vv for debug)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def configure_logging(verbosity: int, console: Optional[Console] = None) -> None:
    """Send ``bkt`` log records to a Rich handler.

    Args:
        verbosity: 0 for warnings, 1 for info, 2 or more for debug
        console: Console shared with the progress display
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_path=False,
        show_time=verbosity >= 2,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("bkt")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


class CommandContext:
    """State shared by the command handlers of one invocation."""

    def __init__(
        self,
        args: argparse.Namespace,
        store: ConfigStore,
        reporter: ConsoleReporter,
        err_console: Console,
    ):
        self.args = args
        self.store = store
        self.reporter = reporter
        self.err_console = err_console

    def error(self, message: str) -> None:
        self.err_console.print(message, markup=False, highlight=False, soft_wrap=True)


def cmd_set(ctx: CommandContext) -> int:
    if not ctx.args.config:
        ctx.error(f"current <set> action only supports config, please {SET_CONFIG_HINT}")
        return EXIT_ERROR

    access_key, secret_key, bucket, endpoint, region = ctx.args.config
    profile = Profile(
        access_key=access_key,
        secret_key=secret_key,
        bucket=bucket,
        endpoint=endpoint,
        region=region,
    )
    ctx.store.save(profile)
    logger.info("Saved profile to %s", ctx.store.path)
    ctx.reporter.on_profile_saved(str(ctx.store.path))
    return EXIT_OK


def cmd_list_config(ctx: CommandContext) -> int:
    ctx.reporter.on_profile(ctx.store.load())
    return EXIT_OK


def cmd_count(ctx: CommandContext) -> int:
    folder = ctx.args.folder or os.getcwd()
    if not os.path.isdir(folder):
        ctx.error(f"Folder not found with provided path: {folder}")
        return EXIT_ERROR
    ctx.reporter.on_count(folder, count_files(folder))
    return EXIT_OK


def cmd_not_implemented(ctx: CommandContext) -> int:
    ctx.error("Function not implemented")
    return EXIT_ERROR


def cmd_put(ctx: CommandContext) -> int:
    args = ctx.args
    if args.source and args.destination:
        return _put_file(ctx)
    if args.folder and args.destination:
        return _put_folder(ctx)

    ctx.error(
        "put requires --source and --destination for a file, "
        "or --folder and --destination for a folder"
    )
    return EXIT_ERROR


def _put_file(ctx: CommandContext) -> int:
    args = ctx.args
    target = resolve_target(ctx.store.load(), args.bucket)
    client = build_s3_client(target)
    task = UploadTask(
        source_path=args.source,
        destination_key=args.destination,
        content_type=args.content_type,
    )

    start_time = time.time()
    try:
        with ctx.err_console.status("Uploading"):
            status_code = upload_file(client, target, task)
    except UploadError as e:
        ctx.error(f"Put file error for {args.source} : {e}")
        return EXIT_UPLOAD_FAILED

    ctx.reporter.on_file_uploaded(args.source, status_code, time.time() - start_time)
    return EXIT_OK


def _put_folder(ctx: CommandContext) -> int:
    args = ctx.args
    target = resolve_target(ctx.store.load(), args.bucket)

    if args.worker is not None:
        ctx.reporter.on_workers(os.cpu_count() or 1, args.worker)

    try:
        with RichProgressDisplay(console=ctx.err_console) as display:
            uploader = BatchUploader(
                target,
                client_factory=build_s3_client,
                progress=display,
            )
            result = uploader.upload_folder(
                args.folder,
                args.destination,
                workers=args.worker,
                limit=args.limit,
                content_type=args.content_type,
            )
    except UploadError as e:
        ctx.error(f"Put folder error for {args.folder} : {e}")
        return EXIT_UPLOAD_FAILED

    ctx.reporter.on_batch_complete(result)
    return EXIT_OK if result.all_succeeded else EXIT_UPLOAD_FAILED


COMMANDS: dict[str, Callable[[CommandContext], int]] = {
    "get": cmd_not_implemented,
    "put": cmd_put,
    "rm": cmd_not_implemented,
    "set": cmd_set,
    "set-config": cmd_set,
    "list-config": cmd_list_config,
    "count": cmd_count,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for upload failures, 2 for errors
    """
    args = parse_args(argv)

    err_console = make_console(stderr=True)
    configure_logging(args.verbose, console=err_console)

    store = ConfigStore(args.config_path or default_config_path())
    ctx = CommandContext(args, store, ConsoleReporter(quiet=args.quiet), err_console)

    try:
        return COMMANDS[args.action](ctx)
    except ConfigError as e:
        ctx.error(f"Configuration error: {e}")
        return EXIT_ERROR
    except TargetError as e:
        ctx.error(f"Target error: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
