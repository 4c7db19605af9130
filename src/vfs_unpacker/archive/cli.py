"""CLI command for unpacking LP1C archives."""

import logging
import argparse
from pathlib import Path
import sys
from typing import List, Optional

import toml
from pydantic import ValidationError

from .config import UnpackerConfig
from .extractor import ArchiveExtractor
from .models import EntryMetadata
from .reader import ArchiveReader
from vfs_unpacker.common import ConfigLoader, LogContext, VfsError, setup_logging

# Application name derived from the top-level package name
_package = __package__ or "vfs_unpacker.archive"
APP_NAME = _package.split('.')[0].replace('_', '-')


def progress_callback(logger: logging.Logger, current: int, total: int, entry: EntryMetadata) -> None:
    """Log extraction progress.

    Args:
        logger: Logger instance
        current: Current entry number (1-based)
        total: Total number of entries
        entry: Entry that was just written
    """
    percent = (current / total) * 100 if total > 0 else 0
    logger.info(f"Extracted ({current}/{total}, {percent:.1f}%): {entry.name} ({entry.size} bytes)")


def default_output_dir(archive_path: Path) -> Path:
    """Archive file name without its extension, under the working directory."""
    return Path.cwd() / Path(archive_path).stem


def unpack_command(
    config: UnpackerConfig,
    archive_path: Path,
    output_dir_override: Optional[Path] = None,
    verify_override: Optional[bool] = None
) -> int:
    """Unpack one archive.

    Args:
        config: Configuration object
        archive_path: Archive to unpack
        output_dir_override: Optional override for output directory
        verify_override: Optional override for post-write verification

    Returns:
        Exit code (0 for success)
    """
    # Use __package__ to avoid __main__ when run as module
    logger = logging.getLogger(__package__ or __name__)

    if output_dir_override:
        output_dir = output_dir_override
    elif config.extraction.output_dir:
        output_dir = Path(config.extraction.output_dir)
    else:
        output_dir = default_output_dir(archive_path)

    verify = verify_override if verify_override is not None else config.extraction.verify_extracted_files

    logger.info(f"Input archive: {archive_path}")
    logger.info(f"Output directory: {output_dir}")

    try:
        with LogContext(archive=str(archive_path)):
            with ArchiveReader.open(archive_path, name_encoding=config.extraction.name_encoding) as reader:
                extractor = ArchiveExtractor(
                    reader,
                    output_dir,
                    verify_extracted_files=verify,
                    progress_callback=lambda c, t, e: progress_callback(logger, c, t, e)
                )
                summary = extractor.run()

    except VfsError as e:
        logger.error(f"Error during unpacking: {e}")
        return 1

    except Exception as e:
        logger.exception(f"Unpacking failed: {e}")
        return 1

    if summary.warnings:
        logger.warning(f"Finished with {len(summary.warnings)} warning(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vfs-unpack",
        description="Extract the files packed in an LP1C (.vfs) archive",
        epilog=(
            "If OUTPUT_DIR is not given, a directory named after the archive "
            "(without extension) in the current location is used.\n\n"
            "Examples:\n"
            "  vfs-unpack Sounds.vfs\n"
            "  vfs-unpack Sounds.vfs extracted_sounds"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "archive",
        type=Path,
        help="Path to the .vfs archive"
    )
    parser.add_argument(
        "output_dir",
        type=Path,
        nargs="?",
        help="Directory to extract into (overrides config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (overrides config)"
    )
    parser.add_argument(
        "--log-format",
        choices=["simple", "detailed", "json"],
        type=str.lower,
        help="Log format (overrides config)"
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip CRC32 verification of extracted files"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the unpack command."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(
        app_name=APP_NAME,
        config_class=UnpackerConfig
    )

    try:
        config = loader.load(defaults_path=args.config)
    except (OSError, toml.TomlDecodeError, ValidationError) as e:
        setup_logging(level=args.log_level or "INFO", format=args.log_format or "simple")
        logging.getLogger(__package__ or __name__).error(f"Invalid configuration: {e}")
        return 1

    setup_logging(
        level=args.log_level or config.logging.level,
        format=args.log_format or config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    return unpack_command(
        config=config,
        archive_path=args.archive,
        output_dir_override=args.output_dir,
        verify_override=False if args.no_verify else None
    )


if __name__ == "__main__":
    sys.exit(main())
