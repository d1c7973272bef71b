from __future__ import annotations

from pathlib import Path

import pytest

from issue_archive.http_client import HttpClient
from issue_archive.images import ImageCacheConfig, ImageDownloader

from .fakes import FakeSession


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def issues_dir(tmp_path: Path) -> Path:
    d = tmp_path / ".issues"
    d.mkdir()
    return d


@pytest.fixture
def image_config(tmp_path: Path, issues_dir: Path) -> ImageCacheConfig:
    return ImageCacheConfig(
        issues_dir=issues_dir,
        asset_root=tmp_path / "site" / "src" / "assets" / "images" / "issues",
        manifest_path=tmp_path / "site" / "scripts" / "image-cache-manifest.json",
    )


@pytest.fixture
def downloader(
    fake_session: FakeSession, image_config: ImageCacheConfig
) -> ImageDownloader:
    http = HttpClient(  # type: ignore[arg-type]
        fake_session, max_retries=0, backoff_base_s=0
    )
    return ImageDownloader(http, asset_root=image_config.asset_root)
