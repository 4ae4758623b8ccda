"""Command line entrypoint: upload one file through a named profile."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from campaign_upload.core.config import settings
from campaign_upload.core.logging import setup_logging
from campaign_upload.models.upload import UploadOptions
from campaign_upload.profiles import PROFILES, get_profile
from campaign_upload.upload.selector import upload_file


def _parse_fields(pairs: List[str]) -> Dict[str, str]:
    fields = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{pair}'")
        fields[key] = value
    return fields


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campaign-upload",
        description="Upload a file to the campaign site backend.",
    )
    parser.add_argument("file", type=Path, help="File to upload")
    parser.add_argument("--profile", default="media", choices=sorted(PROFILES), help="Upload profile")
    parser.add_argument("--name", help="Filename to store (defaults to the file's name)")
    parser.add_argument("--base-url", help="Backend base URL (overrides UPLOAD_BASE_URL)")
    parser.add_argument("--content-type", help="MIME type (guessed from the name by default)")
    parser.add_argument("--field", action="append", default=[], metavar="KEY=VALUE", help="Extra form field for direct uploads")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        extra_fields = _parse_fields(args.field)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    setup_logging()

    run_settings = settings
    if args.base_url:
        run_settings = settings.model_copy(update={"UPLOAD_BASE_URL": args.base_url})

    def show_progress(progress: int) -> None:
        print(f"\r{progress:3d}%", end="", file=sys.stderr, flush=True)

    options = UploadOptions(
        on_progress=None if args.quiet else show_progress,
        extra_fields=extra_fields or None,
        content_type=args.content_type,
    )

    result = asyncio.run(
        upload_file(
            args.file,
            args.name or args.file.name,
            get_profile(args.profile),
            options,
            settings=run_settings,
        )
    )

    if not args.quiet:
        print(file=sys.stderr)
    print(json.dumps(result.to_wire(), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
