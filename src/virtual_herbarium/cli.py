"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import requests

from virtual_herbarium import __version__
from virtual_herbarium.collection import download_specimen_images
from virtual_herbarium.config import Settings, get_settings
from virtual_herbarium.datasources.gbif import search_specimen_metadata
from virtual_herbarium.flows.collection import build_collection
from virtual_herbarium.store import read_metadata_table, table_path, write_metadata_table


def _add_search_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--taxon", type=str, default=None, help="Scientific name to search for")
    parser.add_argument("--lat", type=float, default=None, help="Latitude of the search centre")
    parser.add_argument("--lon", type=float, default=None, help="Longitude of the search centre")
    parser.add_argument(
        "--buffer",
        type=float,
        default=None,
        help="Half-width of the search square in degrees (default: 1)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum occurrences to read (default: search_limit from settings)",
    )
    parser.add_argument(
        "--type",
        dest="search_type",
        type=str,
        default=None,
        help="'herbarium', 'cs' or a GBIF basisOfRecord value (default: from settings)",
    )


def _add_image_arguments(parser: argparse.ArgumentParser) -> None:
    size = parser.add_mutually_exclusive_group()
    size.add_argument("--resize", type=int, default=None, help="JPEG quality (1-100)")
    size.add_argument(
        "--max-megapixels",
        type=float,
        default=None,
        help="Downscale images to just under this many megapixels",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="virtual-herbarium",
        description="Build virtual herbarium collections from GBIF specimen images",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'search' command - metadata only
    search_parser = subparsers.add_parser("search", help="Search GBIF and save specimen metadata")
    _add_search_arguments(search_parser)
    search_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Metadata CSV to write (default: metadata_file from settings)",
    )
    search_parser.add_argument("--quiet", action="store_true", help="Don't print the row count")

    # 'download' command - images from an existing metadata table
    download_parser = subparsers.add_parser("download", help="Download images from a metadata CSV")
    download_parser.add_argument(
        "--metadata",
        type=Path,
        default=None,
        help="Metadata CSV to read (default: metadata_file from settings)",
    )
    download_parser.add_argument("--dir", type=Path, default=None, help="Image output directory")
    download_parser.add_argument("--results", type=Path, default=None, help="Results CSV path")
    download_parser.add_argument("--sleep", type=float, default=None, help="Seconds between images")
    download_parser.add_argument(
        "--timeout", type=float, default=None, help="Per-image timeout in seconds"
    )
    _add_image_arguments(download_parser)

    # 'collect' command - both stages as a Prefect flow
    collect_parser = subparsers.add_parser("collect", help="Search and download in one run")
    _add_search_arguments(collect_parser)
    _add_image_arguments(collect_parser)

    # 'info' command
    subparsers.add_parser("info", help="Show application info")

    return parser


def _print_debug(settings: Settings) -> None:
    shown = settings.model_dump(exclude={"gbif_pwd"})
    print(f"Debug mode enabled. Settings: {shown}")


def _coordinates(args: argparse.Namespace) -> tuple[float, float] | None:
    if args.lat is None and args.lon is None:
        return None
    if args.lat is None or args.lon is None:
        msg = "--lat and --lon must be given together"
        raise ValueError(msg)
    return (args.lat, args.lon)


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command."""
    settings = get_settings()
    if args.debug:
        _print_debug(settings)
    output = table_path(args.output or settings.metadata_file)
    try:
        rows = search_specimen_metadata(
            taxon_name=args.taxon,
            coordinates=_coordinates(args),
            buffer_distance=args.buffer,
            limit=args.limit or settings.search_limit,
            verbose=not args.quiet,
            search_type=args.search_type or settings.search_type,
            user=settings.gbif_user,
            pwd=settings.gbif_pwd,
            email=settings.gbif_email,
        )
    except (ValueError, requests.RequestException) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    write_metadata_table(output, rows)
    print(f"Saved {len(rows)} rows to {output}")
    return 0


def cmd_download(args: argparse.Namespace) -> int:
    """Handle the 'download' command."""
    settings = get_settings()
    if args.debug:
        _print_debug(settings)
    metadata_path = table_path(args.metadata or settings.metadata_file)
    if not metadata_path.exists():
        print(f"Metadata file not found: {metadata_path}", file=sys.stderr)
        return 1

    results_path = table_path(args.results or settings.results_file)
    try:
        rows = read_metadata_table(metadata_path)
        download_specimen_images(
            rows,
            dir_name=args.dir or settings.output_dir,
            resize=args.resize,
            max_megapixels=args.max_megapixels,
            sleep=args.sleep if args.sleep is not None else settings.sleep_seconds,
            result_file_name=results_path,
            timeout_limit=args.timeout or settings.timeout_seconds,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Results written to {results_path}")
    return 0


def cmd_collect(args: argparse.Namespace) -> int:
    """Handle the 'collect' command: search then download via the Prefect flow."""
    if args.debug:
        _print_debug(get_settings())
    try:
        coordinates = _coordinates(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    result = build_collection(
        taxon_name=args.taxon,
        coordinates=coordinates,
        buffer_distance=args.buffer,
        limit=args.limit,
        search_type=args.search_type,
        resize=args.resize,
        max_megapixels=args.max_megapixels,
    )
    print(f"Done: {result}")
    return 0


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Output directory: {settings.output_dir}")
    print(f"GBIF credentials: {'set' if settings.has_gbif_credentials else 'not set'}")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "search": cmd_search,
        "download": cmd_download,
        "collect": cmd_collect,
        "info": cmd_info,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
