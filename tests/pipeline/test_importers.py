"""Tests for the artifact, docs and changelog importers."""

import pytest

from sitebuild.config import LAYOUT_HEADER
from sitebuild.exceptions import FileOperationError
from sitebuild.pipeline.importers import (
    DOCS_RULES,
    ArtifactSynchronizer,
    ChangelogImporter,
    DocsImporter,
    transform_doc,
)
from sitebuild.pipeline.rewriting import rewrite


@pytest.mark.asyncio
async def test_artifacts_copied_byte_for_byte(upstream):
    copied = await ArtifactSynchronizer(upstream).run()
    assert [p.name for p in copied] == ["math.js", "math.map", "math.min.js"]
    dist = upstream.dependency_root / "dist"
    for path in copied:
        assert path.read_bytes() == (dist / path.name).read_bytes()


@pytest.mark.asyncio
async def test_artifacts_overwrite_existing_files(upstream):
    upstream.lib_dest_dir.mkdir(parents=True)
    (upstream.lib_dest_dir / "math.js").write_bytes(b"stale")
    await ArtifactSynchronizer(upstream).run()
    assert (upstream.lib_dest_dir / "math.js").read_bytes() == b"x" * 102400


@pytest.mark.asyncio
async def test_artifacts_with_nothing_to_copy(upstream, caplog):
    for path in (upstream.dependency_root / "dist").iterdir():
        path.unlink()
    caplog.set_level("WARNING")
    assert await ArtifactSynchronizer(upstream).run() == []
    assert "No artifacts matched" in caplog.text


@pytest.mark.asyncio
async def test_lib_docs_history_are_idempotent(upstream, take_snapshot):
    """Running twice against the same upstream yields identical output."""

    async def run_all():
        await ArtifactSynchronizer(upstream).run()
        await DocsImporter(upstream).run()
        await ChangelogImporter(upstream).run()

    await run_all()
    first = take_snapshot(upstream.site_root)
    await run_all()
    assert take_snapshot(upstream.site_root) == first


def test_docs_rules_rewrite_changelog_and_relative_links():
    content = "[a](getting_started.md) [b](./reference/functions.md) [h](../HISTORY.md)"
    assert rewrite(content, DOCS_RULES) == (
        "[a](getting_started.html) [b](./reference/functions.html) [h](../history.html)"
    )


@pytest.mark.parametrize(
    "link",
    [
        "[r](https://github.com/josdejong/mathjs/blob/master/README.md)",
        "[a](#section)",
        "[t](notes.txt)",
        "[m](guide.md#anchor)",
        "plain guide.md text",
    ],
)
def test_docs_rules_leave_other_links_untouched(link):
    assert rewrite(link, DOCS_RULES) == link


def test_transform_doc_prepends_header_once():
    out = transform_doc("# Title\n", LAYOUT_HEADER)
    assert out.startswith(LAYOUT_HEADER)
    assert out.count(LAYOUT_HEADER) == 1
    assert transform_doc(out, LAYOUT_HEADER) == out


@pytest.mark.asyncio
async def test_docs_mirrored_under_site_docs(upstream):
    written = await DocsImporter(upstream).run()
    rel = sorted(p.relative_to(upstream.docs_dest_dir).as_posix() for p in written)
    assert rel == ["getting_started.md", "index.md", "reference/functions.md"]
    index = (upstream.docs_dest_dir / "index.md").read_text(encoding="utf-8")
    assert index == (
        LAYOUT_HEADER
        + "# Docs\n\nSee [getting started](getting_started.html) "
        + "and [history](../history.html).\n"
    )
    guide = (upstream.docs_dest_dir / "getting_started.md").read_text(encoding="utf-8")
    assert "(https://github.com/josdejong/mathjs/blob/master/README.md)" in guide


@pytest.mark.asyncio
async def test_changelog_written_lowercase_with_header(upstream):
    dest = await ChangelogImporter(upstream).run()
    assert dest == upstream.site_root / "history.md"
    assert dest.read_text(encoding="utf-8").startswith(LAYOUT_HEADER + "# History\n")


@pytest.mark.asyncio
async def test_changelog_missing_source_raises(upstream):
    upstream.changelog_src.unlink()
    with pytest.raises(FileOperationError) as excinfo:
        await ChangelogImporter(upstream).run()
    assert excinfo.value.context["operation"] == "read"


@pytest.mark.asyncio
async def test_latin1_doc_is_imported_with_replacement(upstream):
    (upstream.docs_src_root / "notes.md").write_bytes(b"caf\xe9 [x](a.md)\n")
    await DocsImporter(upstream).run()
    notes = (upstream.docs_dest_dir / "notes.md").read_text(encoding="utf-8")
    assert notes == LAYOUT_HEADER + "caf� [x](a.html)\n"


@pytest.mark.asyncio
async def test_latin1_changelog_is_imported_with_replacement(upstream):
    upstream.changelog_src.write_bytes(b"# History\n\n- Fixed caf\xe9.\n")
    dest = await ChangelogImporter(upstream).run()
    assert dest.read_text(encoding="utf-8") == LAYOUT_HEADER + "# History\n\n- Fixed caf�.\n"


@pytest.mark.asyncio
async def test_doc_already_carrying_header_keeps_a_single_one(upstream):
    (upstream.docs_src_root / "custom.md").write_text(LAYOUT_HEADER + "# Custom\n", encoding="utf-8")
    await DocsImporter(upstream).run()
    custom = (upstream.docs_dest_dir / "custom.md").read_text(encoding="utf-8")
    assert custom == LAYOUT_HEADER + "# Custom\n"
