from __future__ import annotations

import html as html_lib
import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

import requests
from tqdm import tqdm

from .http_client import HttpClient
from .ingest import list_issue_files
from .manifest import AssetManifest, load_asset_manifest, save_asset_manifest
from .records import derive_slug
from .urls import (
    extension_from_content_type,
    filename_from_url,
    is_remote_url,
    split_extension,
)

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_PREFIX = "/assets/images/issues"

_SRC_ATTR = re.compile(r"src\s*=\s*(['\"])([^'\"]+)\1", re.IGNORECASE)


class DownloadError(RuntimeError):
    pass


@dataclass
class ImageCacheConfig:
    issues_dir: Path
    asset_root: Path
    manifest_path: Path
    public_prefix: str = DEFAULT_PUBLIC_PREFIX
    timeout_s: int = 45
    max_retries: int = 2

    def public_path(self, slug: str, filename: str) -> str:
        return f"{self.public_prefix.rstrip('/')}/{slug}/{filename}"

    def local_file_for(self, local_path: str) -> Path | None:
        """Map a public path recorded in the manifest back to the disk file."""

        prefix = self.public_prefix.rstrip("/") + "/"
        if not local_path.startswith(prefix):
            return None
        rel = local_path[len(prefix) :].lstrip("/")
        if not rel:
            return None
        return self.asset_root / rel


@dataclass(frozen=True)
class CacheSummary:
    files_scanned: int
    files_updated: int
    downloaded: int
    cache_hits: int
    failed: int


def unused_path(dest_dir: Path, stem: str, ext: str) -> Path:
    """First of ``stem.ext``, ``stem-1.ext``, ``stem-2.ext`` ... not on disk."""

    candidate = dest_dir / f"{stem}{ext}"
    counter = 1
    while candidate.exists():
        candidate = dest_dir / f"{stem}-{counter}{ext}"
        counter += 1
    return candidate


class ImageDownloader:
    def __init__(self, http: HttpClient, *, asset_root: Path) -> None:
        self.http = http
        self.asset_root = asset_root

    def download(self, url: str, slug: str) -> Path:
        """Fetch ``url`` into ``<asset_root>/<slug>/`` and return the new file.

        Raises DownloadError on network failure or a non-2xx response.
        Collision checking and the final write are not atomic, so only one
        process may populate an asset root at a time.
        """

        try:
            res = self.http.get(url)
        except RuntimeError as e:
            raise DownloadError(str(e)) from e
        if not res.ok:
            raise DownloadError(f"HTTP {res.status_code}")

        stem, ext = split_extension(filename_from_url(url))
        if not ext:
            ext = extension_from_content_type(res.content_type) or ".img"

        dest_dir = self.asset_root / slug
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = unused_path(dest_dir, stem, ext)
        dest.write_bytes(res.body)
        return dest


def ensure_local_asset(
    url: str,
    slug: str,
    *,
    manifest: AssetManifest,
    downloader: ImageDownloader,
    config: ImageCacheConfig,
    stats: Counter[str] | None = None,
) -> str | None:
    """Return the local public path for ``url``, downloading if needed.

    Returns None when the image could not be fetched.
    """

    stats = stats if stats is not None else Counter()

    existing = manifest.get(url)
    if existing is not None:
        local_file = config.local_file_for(existing.local_path)
        if local_file is not None and local_file.is_file():
            stats["cache_hits"] += 1
            return existing.local_path

    try:
        dest = downloader.download(url, slug)
    except DownloadError as e:
        logger.warning("Failed to download %s: %s", url, e)
        stats["failed"] += 1
        return None

    entry = manifest.record(url, config.public_path(slug, dest.name))
    stats["downloaded"] += 1
    return entry.local_path


def _is_encodable(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def rewrite_issue_html(
    html: str,
    slug: str,
    *,
    manifest: AssetManifest,
    downloader: ImageDownloader,
    config: ImageCacheConfig,
    stats: Counter[str] | None = None,
) -> tuple[str, bool]:
    """Point every remote ``src`` attribute in ``html`` at a cached copy.

    Scans the raw text instead of re-serializing a DOM, so everything except
    the rewritten attribute values is preserved byte for byte. Occurrences
    that are not remote, or whose download failed, are left as they were.
    """

    stats = stats if stats is not None else Counter()
    out: list[str] = []
    last = 0
    changed = False

    for m in _SRC_ATTR.finditer(html):
        quote, raw_value = m.group(1), m.group(2)
        decoded = html_lib.unescape(raw_value)
        if not is_remote_url(decoded):
            continue
        if not _is_encodable(decoded):
            logger.warning("Skipping src with undecodable bytes in %s", slug)
            stats["failed"] += 1
            continue

        local_path = ensure_local_asset(
            decoded,
            slug,
            manifest=manifest,
            downloader=downloader,
            config=config,
            stats=stats,
        )
        if local_path is None or local_path == decoded:
            continue

        out.append(html[last : m.start()])
        out.append(f"src={quote}{html_lib.escape(local_path, quote=True)}{quote}")
        last = m.end()
        changed = True

    if not changed:
        return html, False
    out.append(html[last:])
    return "".join(out), True


def cache_issue_images(
    config: ImageCacheConfig,
    *,
    manifest: AssetManifest | None = None,
    downloader: ImageDownloader | None = None,
) -> tuple[CacheSummary, AssetManifest]:
    """Cache remote images for every issue file and rewrite them in place.

    The manifest is loaded from ``config.manifest_path`` unless one is
    passed in, and is saved once after all files are processed.
    """

    issue_files = list_issue_files(config.issues_dir)
    if manifest is None:
        manifest = load_asset_manifest(config.manifest_path)
    if downloader is None:
        http = HttpClient(
            requests.Session(),
            timeout_s=config.timeout_s,
            max_retries=config.max_retries,
        )
        downloader = ImageDownloader(http, asset_root=config.asset_root)

    stats: Counter[str] = Counter()
    for path in tqdm(issue_files, desc="Caching images", unit="issue", disable=None):
        # Bytes in, bytes out: line endings and undecodable bytes survive.
        html = path.read_bytes().decode("utf-8", errors="surrogateescape")
        new_html, changed = rewrite_issue_html(
            html,
            derive_slug(path),
            manifest=manifest,
            downloader=downloader,
            config=config,
            stats=stats,
        )
        if changed:
            path.write_bytes(new_html.encode("utf-8", errors="surrogateescape"))
            stats["files_updated"] += 1
            logger.info("Updated %s", path.name)

    save_asset_manifest(manifest, config.manifest_path)

    summary = CacheSummary(
        files_scanned=len(issue_files),
        files_updated=stats["files_updated"],
        downloaded=stats["downloaded"],
        cache_hits=stats["cache_hits"],
        failed=stats["failed"],
    )
    return summary, manifest
