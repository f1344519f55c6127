#!/usr/bin/env python3
"""
twinfinder CLI — Command line interface for duplicate file detection and removal.
Runs the size → hardlink → sample → hash pipeline and prints the groups it finds.
Deletion moves files to the system trash unless --permanent is given.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import NoReturn, Optional

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    from send2trash import send2trash
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from twinfinder.commands import DeduplicationCommand
from twinfinder.core.models import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_QUEUE_DEPTH,
    DEFAULT_WORKERS,
    DeduplicationParams,
    DeduplicationResult,
    DigestMode,
    OutputFormat,
    RemovalPolicy,
)
from twinfinder.services.duplicate_service import DuplicateService
from twinfinder.services.report_service import ReportService
from twinfinder.utils.convert_utils import ConvertUtils
from twinfinder.aliases import (
    EPILOG_TEXT,
    FORMAT_ALIASES, FORMAT_CHOICES, FORMAT_HELP_TEXT,
    MAX_READ_HELP_TEXT, MODE_HELP_TEXT,
)

EXIT_CANCELLED = 130


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.cancel_event = threading.Event()
        self.command: Optional[DeduplicationCommand] = None

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        sys.stdout.reconfigure(encoding='utf-8')
        sys.stderr.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="twinfinder",
            description="twinfinder — Fast duplicate file finder for large directory trees",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Required arguments
        parser.add_argument(
            "--input", "-i",
            required=True,
            type=str,
            help="Input directory to scan for duplicates"
        )

        # Traversal options
        parser.add_argument(
            "--max-read", "-r",
            default="1G",
            type=ConvertUtils.size_argument,
            metavar='',
            dest="max_read",
            help=MAX_READ_HELP_TEXT
        )
        parser.add_argument(
            "--depth", "-d",
            default=DEFAULT_MAX_DEPTH,
            type=int,
            metavar='',
            help=f"Maximum directory depth below the input directory. Default: {DEFAULT_MAX_DEPTH}"
        )
        parser.add_argument(
            "--follow-symlinks",
            action="store_true",
            dest="follow_symlinks",
            help="Follow symbolic links (not supported, rejected)"
        )

        # Hashing options
        parser.add_argument(
            "--sequential",
            action="store_true",
            help=MODE_HELP_TEXT
        )
        parser.add_argument(
            "--workers", "-w",
            default=DEFAULT_WORKERS,
            type=int,
            metavar='',
            help=f"Number of hashing threads. Default: {DEFAULT_WORKERS}"
        )
        parser.add_argument(
            "--qsize", "-q",
            default=DEFAULT_QUEUE_DEPTH,
            type=int,
            metavar='',
            help=f"Per-worker queue depth and dispatch batch size. Default: {DEFAULT_QUEUE_DEPTH}"
        )
        parser.add_argument(
            "--no-weed",
            action="store_false",
            dest="weed",
            help="Skip the head/tail sample passes and hash every size match in full"
        )
        parser.add_argument(
            "--verify",
            action="store_true",
            help="Confirm every group byte by byte after hashing"
        )

        # Output options
        parser.add_argument(
            "--format",
            choices=FORMAT_CHOICES,
            default="human",
            type=str,
            dest="output_format",
            help=FORMAT_HELP_TEXT
        )

        # Actions
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Keep the first file of every group and move the rest to trash"
        )
        parser.add_argument(
            "--interactive",
            action="store_true",
            help="Ask before deleting each file (with --delete)"
        )
        parser.add_argument(
            "--permanent",
            action="store_true",
            help="Delete permanently instead of moving to trash (with --delete)"
        )

        parser.add_argument(
            "--quiet",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show detailed statistics and progress"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if (args.interactive or args.permanent) and not args.delete:
            self.error_exit("--interactive and --permanent can only be used with --delete")

        # Prevent interactive confirmation in non-TTY environments
        if args.interactive and not sys.stdin.isatty():
            self.error_exit(
                "Cannot request interactive confirmation in non-interactive session.\n"
                "Drop --interactive to delete without asking."
            )

        if args.follow_symlinks:
            self.error_exit("Following symbolic links is not supported")

        root_path = Path(args.input).resolve()
        if not root_path.exists():
            self.error_exit(f"Directory not found: {args.input}")
        if not root_path.is_dir():
            self.error_exit(f"Path is not a directory: {args.input}")

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        """Create DeduplicationParams from CLI arguments."""
        try:
            return DeduplicationParams(
                root_dir=str(Path(args.input).resolve()),
                max_read_bytes=args.max_read,
                max_depth=args.depth,
                mode=DigestMode.SEQUENTIAL if args.sequential else DigestMode.CONCURRENT,
                workers=args.workers,
                queue_depth=args.qsize,
                weed=args.weed,
                verify=args.verify,
                output_format=FORMAT_ALIASES[args.output_format],
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    def stopped_flag(self) -> bool:
        """True once SIGINT or SIGTERM was received."""
        return self.cancel_event.is_set()

    def handle_signal(self, signum, frame) -> None:
        """Requests cancellation; the pipeline stops at its next check and shuts the pool down."""
        self.cancel_event.set()

    def install_signal_handlers(self) -> dict:
        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, self.handle_signal)
        return previous

    @staticmethod
    def restore_signal_handlers(previous: dict) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def run_deduplication(self, params: DeduplicationParams) -> DeduplicationResult:
        """Execute deduplication workflow."""
        self.command = DeduplicationCommand()
        if self.verbose:
            print(f"Finding duplicates (mode: {params.mode.display_name})...")

        try:
            result = self.command.execute(
                params,
                progress_callback=self.progress_callback if self.verbose else None,
                stopped_flag=self.stopped_flag
            )
        except RuntimeError as e:
            self.error_exit(str(e))
        finally:
            self.command.shutdown()

        if self.verbose:
            sys.stderr.write("\n")
            print("\nDeduplication Statistics:")
            print(result.stats.print_summary())
            if result.terminated_at is not None:
                print(f"Nothing left to compare after: {result.terminated_at.value}")

        return result

    def output_results(self, result: DeduplicationResult, params: DeduplicationParams) -> int:
        """Print duplicate groups; returns the duplicate count."""
        write = (lambda line: None) if self.quiet else print
        return ReportService.report(result.groups, params.output_format, write=write)

    @staticmethod
    def confirm_deletion(path: str) -> bool:
        response = input(f"Delete {path}? [y/N]: ")
        return response.strip().lower() in ("y", "yes")

    def execute_delete(self, result: DeduplicationResult, args: argparse.Namespace) -> int:
        """Keep one file per group, delete the rest. Returns the number of files removed."""
        if not result.groups:
            return 0

        policy = RemovalPolicy.INTERACTIVE if args.interactive else RemovalPolicy.UNCONDITIONAL
        target = "permanently" if args.permanent else "to trash"
        total = DuplicateService.count_duplicates(result.groups)
        failed_files = []

        if not self.quiet:
            print(f"\nRemoving up to {total} files {target}...")

        removed = DuplicateService.remove_duplicates(
            result.groups,
            policy=policy,
            confirm=self.confirm_deletion,
            permanent=args.permanent,
            on_error=lambda path, error: failed_files.append((path, str(error))),
            on_removed=(lambda path: print(f"  removed {path}")) if self.verbose else None,
        )

        if failed_files:
            print(f"\n⚠️  Partial success: {removed}/{total} files removed.")
            print(f"Failed to delete {len(failed_files)} file(s):")
            for path, error in failed_files[:5]:
                print(f"  • {os.path.basename(path)}: {error.split(':')[-1].strip()}")
            if len(failed_files) > 5:
                print(f"  ...and {len(failed_files) - 5} more files")
        elif not self.quiet:
            print(f"✅ Removed {removed} files {target}.")
        return removed

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger("twinfinder").setLevel(logging.INFO)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet and params.output_format == OutputFormat.HUMAN:
            print(f"Scanning directory: {params.root_dir}")

        previous_handlers = self.install_signal_handlers()
        try:
            result = self.run_deduplication(params)
        finally:
            self.restore_signal_handlers(previous_handlers)

        if result.cancelled:
            self.warning("Operation cancelled, results are incomplete")
            sys.exit(EXIT_CANCELLED)

        self.output_results(result, params)

        if args.delete:
            self.execute_delete(result, args)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(EXIT_CANCELLED)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
