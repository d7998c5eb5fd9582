"""
Command-line entry point for the collection uploader.

Pins every image in <output>/images and its metadata (built from the matching
draft in <output>/drafts) to IPFS, skipping anything already recorded in the
upload caches, then writes tokenUriMap.json and uploadResults.json.
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from managers.errors import UploadError
from managers.upload_config import UploadConfig
from managers.upload_pipeline import build_pipeline, collect_status


def report_error(message: str):
    print(f"\nERROR: {message}", file=sys.stderr)


def print_status(config: UploadConfig) -> int:
    """Print cache and pending status without uploading anything."""
    status = collect_status(build_pipeline(config, read_only=True))
    print(json.dumps(status, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        description="Upload generated images and their metadata to IPFS (Pinata), resumably",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  PINATA_JWT=... python upload.py
  python upload.py --output-root ./output
  python upload.py --status
        """
    )
    parser.add_argument("--output-root", default=None, help="Directory holding images/, drafts/, caches and outputs (default: ./output)")
    parser.add_argument("--images-dir", default=None, help="Payload directory (default: <output-root>/images)")
    parser.add_argument("--drafts-dir", default=None, help="Draft descriptor directory (default: <output-root>/drafts)")
    parser.add_argument("--status", action="store_true", help="Show cached and pending assets without uploading")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        config = UploadConfig(
            output_root=args.output_root,
            images_dir=args.images_dir,
            drafts_dir=args.drafts_dir,
        )
        if args.status:
            return print_status(config)
        pipeline = build_pipeline(config)
    except UploadError as e:
        report_error(str(e))
        return 1

    report = pipeline.run()
    if not report.ok:
        report_error(str(report.error))
        return 1

    print("\nDone.")
    print(f"Saved {config.token_uri_map_path} (ID -> tokenURI)")
    print(f"Saved {config.results_path} (full details)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
