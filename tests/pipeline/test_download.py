"""Tests for the download page updater."""

import pytest

from sitebuild.exceptions import MetadataIncompleteError
from sitebuild.pipeline.download import DownloadPageUpdater, update_download_page
from sitebuild.pipeline.importers import ArtifactSynchronizer
from sitebuild.pipeline.metadata import DownloadMetadata

META = DownloadMetadata(version="3.4.0", development_size="1283 kB", production_size="109 kB")


def test_all_four_fragments_replaced_everywhere():
    content = (
        "(version 3.3.0) and (version 3.3.1-SNAPSHOT)\n"
        "https://cdn/3.3.0/math.js https://cdn/3.3.0/math.min.js\n"
        '<span id="development-size">1200 kB</span>\n'
        '<span id="production-size">90 kB</span>\n'
        '<span id="production-size"></span>\n'
    )
    assert update_download_page(content, META) == (
        "(version 3.4.0) and (version 3.4.0)\n"
        "https://cdn/3.4.0/math.js https://cdn/3.4.0/math.min.js\n"
        '<span id="development-size">1283 kB</span>\n'
        '<span id="production-size">109 kB</span>\n'
        '<span id="production-size">109 kB</span>\n'
    )


@pytest.mark.parametrize(
    "text",
    [
        "Requires node 4.0.0 or newer.",
        "version 3.3.0 without parentheses",
        "(version 3.3)",
        "path/3.3/segment",
        '<span id="other-size">1 kB</span>',
    ],
)
def test_other_version_like_text_untouched(text):
    assert update_download_page(text, META) == text


def test_snapshot_version_is_inserted_verbatim():
    meta = DownloadMetadata("4.0.0-SNAPSHOT", "1 kB", "1 kB")
    assert update_download_page("(version 3.4.0) /3.4.0/", meta) == (
        "(version 4.0.0-SNAPSHOT) /4.0.0-SNAPSHOT/"
    )


@pytest.mark.asyncio
async def test_updater_rewrites_page_from_site_artifacts(upstream):
    await ArtifactSynchronizer(upstream).run()
    page = await DownloadPageUpdater(upstream).run()
    text = page.read_text(encoding="utf-8")
    assert "(version 3.4.0)" in text
    assert "/mathjs/3.4.0/math.js" in text
    assert '<span id="development-size">100 kB</span>' in text
    assert "Requires node 4.0.0 or newer." in text


@pytest.mark.asyncio
async def test_incomplete_metadata_leaves_page_untouched(upstream):
    """Without copied artifacts nothing is written."""
    before = upstream.download_page.read_bytes()
    with pytest.raises(MetadataIncompleteError):
        await DownloadPageUpdater(upstream).run()
    assert upstream.download_page.read_bytes() == before


@pytest.mark.asyncio
async def test_updater_uses_injected_extractor(upstream):
    class FakeExtractor:
        async def extract(self):
            return META

    await DownloadPageUpdater(upstream, extractor=FakeExtractor()).run()
    assert '<span id="production-size">109 kB</span>' in upstream.download_page.read_text(
        encoding="utf-8"
    )
