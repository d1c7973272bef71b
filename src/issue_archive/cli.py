from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .images import DEFAULT_PUBLIC_PREFIX, ImageCacheConfig, cache_issue_images
from .ingest import IngestConfig, run_ingest


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Project root that relative defaults are resolved against",
    )
    p.add_argument(
        "--issues-dir",
        type=Path,
        default=None,
        help="Directory of issue *.html files. Defaults to <root>/.issues",
    )
    p.add_argument("-v", "--verbose", action="count", default=0)


def _issues_dir(args: argparse.Namespace) -> Path:
    return args.issues_dir or args.root / ".issues"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="issue-archive")
    sub = parser.add_subparsers(dest="cmd", required=True)

    ingest_p = sub.add_parser(
        "ingest",
        help="Normalize issue files into a year-grouped JSON index",
    )
    _add_common_args(ingest_p)
    ingest_p.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Index JSON path. Defaults to <root>/site/src/data/issues.json",
    )
    ingest_p.add_argument(
        "--subjects",
        type=Path,
        default=None,
        help=(
            "JSON list of {date, subject} objects. Defaults to "
            "<root>/site/src/data/subjects.json; a missing file is ignored"
        ),
    )

    images_p = sub.add_parser(
        "cache-images",
        help="Download remote images and rewrite issue files to local copies",
    )
    _add_common_args(images_p)
    images_p.add_argument(
        "--asset-root",
        type=Path,
        default=None,
        help="Defaults to <root>/site/src/assets/images/issues",
    )
    images_p.add_argument(
        "--public-prefix",
        default=DEFAULT_PUBLIC_PREFIX,
        help="URL path under which --asset-root is served",
    )
    images_p.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Defaults to <root>/site/scripts/image-cache-manifest.json",
    )
    images_p.add_argument("--timeout", type=int, default=45)
    images_p.add_argument("--max-retries", type=int, default=2)

    args = parser.parse_args(argv)
    _configure_logging(int(args.verbose))

    if args.cmd == "ingest":
        data_dir = args.root / "site" / "src" / "data"
        config = IngestConfig(
            issues_dir=_issues_dir(args),
            output_path=args.out or data_dir / "issues.json",
            subjects_path=args.subjects or data_dir / "subjects.json",
        )
        try:
            summary = run_ingest(config)
        except (OSError, ValueError) as e:
            print(str(e), file=sys.stderr)
            return 2
        print(
            "ingest: "
            f"issues={summary.issues} groups={summary.groups} "
            f"subjects={summary.subjects} "
            f"subjects_assigned={summary.subjects_assigned} "
            f"fallback_titles={summary.titles_from_fallback} "
            f"out={summary.output_path}"
        )
        return 0

    if args.cmd == "cache-images":
        asset_root = args.asset_root or (
            args.root / "site" / "src" / "assets" / "images" / "issues"
        )
        manifest_path = args.manifest or (
            args.root / "site" / "scripts" / "image-cache-manifest.json"
        )
        image_cfg = ImageCacheConfig(
            issues_dir=_issues_dir(args),
            asset_root=asset_root,
            manifest_path=manifest_path,
            public_prefix=str(args.public_prefix),
            timeout_s=int(args.timeout),
            max_retries=int(args.max_retries),
        )
        try:
            result, _manifest = cache_issue_images(image_cfg)
        except (OSError, ValueError) as e:
            print(str(e), file=sys.stderr)
            return 2
        print(
            "cache-images: "
            f"scanned={result.files_scanned} updated={result.files_updated} "
            f"downloaded={result.downloaded} cache_hits={result.cache_hits} "
            f"failed={result.failed}"
        )
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
