"""
Main entry point for the Diffalyze command line.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading
- Running a comparison and printing the report
- Optional whole-file merge toward one side
- Exception handling
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from diffalyze.core.diff.text_diff import SideBySideFormatter
from diffalyze.core.models import Side
from diffalyze.services.comparison import ComparisonController, OutcomeStatus
from diffalyze.services.file_io import TextFileService
from diffalyze.services.settings import SettingsManager


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "diffalyze"
APP_VERSION = "1.0.0"

LOGS_DIR = Path.cwd() / "logs"

EXIT_IDENTICAL = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    original_path: str
    changed_path: str
    ignore_spaces_case: bool = False
    ignore_blank: bool = False
    regex: Optional[str] = None
    accept: Optional[Side] = None
    output_path: Optional[str] = None
    width: int = 100
    summary_only: bool = False
    config_file: Optional[str] = None
    timeout: Optional[float] = None
    log_level: str = "WARNING"
    debug: bool = False


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # Console handler; stdout carries the report
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.DEBUG)

    return root_logger


# =============================================================================
# Exception Handling
# =============================================================================

class ExceptionHandler:
    """Global handler that logs unhandled exceptions."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle_exception(self, exc_type: type, exc_value: BaseException, exc_tb) -> None:
        """Handle an unhandled exception."""
        # Don't handle keyboard interrupt
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return

        self.logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_tb)
        )
        tb_text = ''.join(traceback.format_exception(exc_type, exc_value, exc_tb))
        print(f"{APP_NAME}: unexpected error\n{tb_text}", file=sys.stderr)


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Line diff with moved line detection and merge",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s old.txt new.txt                        Show differences
  %(prog)s --ignore-spaces-case old.txt new.txt   Ignore whitespace and case
  %(prog)s --regex '//.*' old.c new.c             Ignore line comments
  %(prog)s --accept changed -o merged.txt a b     Merge everything from new
        """
    )

    parser.add_argument('original', help='Original file')
    parser.add_argument('changed', help='Changed file')

    # Comparison options
    parser.add_argument(
        '-i', '--ignore-spaces-case',
        action='store_true',
        help='Ignore whitespace and letter case'
    )
    parser.add_argument(
        '-b', '--ignore-blank',
        action='store_true',
        help='Treat whitespace-only lines as empty'
    )
    parser.add_argument(
        '-r', '--regex',
        help='Strip matches of this pattern before comparing'
    )

    # Merge options
    parser.add_argument(
        '-a', '--accept',
        choices=['original', 'changed'],
        help='Accept every change from one side and output the merged text'
    )
    parser.add_argument(
        '-o', '--output',
        help='Write merged text to this file instead of stdout'
    )

    # Display options
    parser.add_argument(
        '-w', '--width',
        type=int,
        default=100,
        help='Report width in characters'
    )
    parser.add_argument(
        '-s', '--summary-only',
        action='store_true',
        help='Print only the statistics summary'
    )

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='Configuration file path'
    )
    parser.add_argument(
        '-t', '--timeout',
        type=float,
        help='Seconds allowed for the exact comparison'
    )

    # Debugging
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='WARNING',
        help='Logging level'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Write a debug log file'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {APP_VERSION}'
    )

    parsed = parser.parse_args(args)

    return CommandLineArgs(
        original_path=parsed.original,
        changed_path=parsed.changed,
        ignore_spaces_case=parsed.ignore_spaces_case,
        ignore_blank=parsed.ignore_blank,
        regex=parsed.regex,
        accept=Side.from_string(parsed.accept) if parsed.accept else None,
        output_path=parsed.output,
        width=parsed.width,
        summary_only=parsed.summary_only,
        config_file=parsed.config,
        timeout=parsed.timeout,
        log_level=parsed.log_level,
        debug=parsed.debug,
    )


# =============================================================================
# Comparison
# =============================================================================

def format_summary(outcome) -> str:
    """One line statistics summary."""
    s = outcome.stats
    return (f"{s.added} added, {s.removed} removed, {s.modified} modified, "
            f"{s.moved} moved, {s.unchanged} unchanged "
            f"in {len(outcome.blocks)} block(s)")


def run_comparison(args: CommandLineArgs, logger: logging.Logger) -> int:
    """Compare the two files and print the report. Returns the exit code."""
    manager = SettingsManager(Path(args.config_file)) if args.config_file else SettingsManager()
    settings = manager.settings

    comparison = settings.comparison
    comparison.ignore_spaces_case = comparison.ignore_spaces_case or args.ignore_spaces_case
    comparison.ignore_blank = comparison.ignore_blank or args.ignore_blank
    if args.regex is not None:
        comparison.regex = args.regex
    if args.timeout is not None:
        settings.limits.worker_timeout = args.timeout

    file_service = TextFileService()
    inputs = {}
    for side, path in ((Side.ORIGINAL, args.original_path), (Side.CHANGED, args.changed_path)):
        read = file_service.read_text(path)
        if not read.success:
            logger.error("Could not read input: %s", read.error)
            print(f"{APP_NAME}: {read.error}", file=sys.stderr)
            return EXIT_ERROR
        inputs[side] = read.file

    with ComparisonController(settings) as controller:
        outcome = controller.compare(inputs[Side.ORIGINAL].text, inputs[Side.CHANGED].text)

        for warning in outcome.warnings:
            print(f"warning: {warning}", file=sys.stderr)

        if outcome.status in (OutcomeStatus.REJECTED, OutcomeStatus.FAILED):
            for error in outcome.errors:
                print(f"{APP_NAME}: {error}", file=sys.stderr)
            return EXIT_ERROR

        if outcome.status is OutcomeStatus.IDENTICAL:
            print("Texts are identical")
            return EXIT_IDENTICAL

        if not args.summary_only and args.accept is None:
            formatter = SideBySideFormatter(width=args.width)
            for line in formatter.format(outcome.display_diff):
                print(line)
            print()
        print(format_summary(outcome), file=sys.stderr if args.accept else sys.stdout)

        if args.accept is not None:
            controller.accept_all(args.accept)
            merged = controller.session.output_text
            if args.output_path:
                written = file_service.write_text(
                    args.output_path,
                    merged,
                    encoding=inputs[args.accept].encoding,
                )
                if not written.success:
                    print(f"{APP_NAME}: {written.error}", file=sys.stderr)
                    return EXIT_ERROR
                logger.info("Merged text written to %s", args.output_path)
            else:
                sys.stdout.write(merged)

    return EXIT_DIFFERENT


# =============================================================================
# Main Function
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Exit code (0 identical, 1 different, 2 error)
    """
    args = parse_arguments(argv)

    log_file = LOGS_DIR / f"{APP_NAME}_{datetime.now():%Y%m%d}.log" if args.debug else None
    logger = setup_logging(args.log_level, log_file)
    logger.debug("Starting %s v%s", APP_NAME, APP_VERSION)

    exception_handler = ExceptionHandler(logger)
    sys.excepthook = exception_handler.handle_exception

    return run_comparison(args, logger)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
