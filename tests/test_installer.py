from pathlib import Path

import pytest

from core.config import AppSettings
from core.domain.errors import (
    DirectoryExistsError,
    ErrorKind,
    ExtractionError,
    InvalidCharactersError,
    InvalidVersionError,
    NameValidationError,
    SourceUnavailableError,
    TransportError,
)
from core.services.installer import (
    InstallHooks,
    InstallRequest,
    InstallState,
    install,
    list_versions,
    obtain_project_name,
)

CDN = "https://cdn.test/framework"


@pytest.fixture
def local_settings(settings: AppSettings) -> AppSettings:
    return settings.model_copy(update={"cache_dir": Path("releases")})


@pytest.mark.asyncio
async def test_latest_from_local_cache_uses_no_network(
    router, make_transport, local_settings: AppSettings, make_zip, tmp_path: Path
) -> None:
    make_zip(tmp_path / "releases" / "latest" / "src.zip", {"simpl/a.txt": "a", "simpl/sub/b.txt": "b"})
    states: list[InstallState] = []

    result = await install(
        settings=local_settings,
        request=InstallRequest("demo"),
        transport=make_transport(local_settings),
        hooks=InstallHooks(state_changed=states.append),
        base_dir=tmp_path,
    )

    assert router.requests == []
    assert result.source_kind == "local_cache"
    assert result.file_count == 2
    assert result.target_dir == tmp_path / "demo"
    assert (tmp_path / "demo" / "sub" / "b.txt").read_text(encoding="utf-8") == "b"
    assert states == [
        InstallState.IDLE,
        InstallState.NAME_VALIDATED,
        InstallState.SOURCE_RESOLVED,
        InstallState.MATERIALIZING,
        InstallState.REPORTED,
    ]


@pytest.mark.asyncio
async def test_remote_archive_is_downloaded_and_extracted(
    router, transport, settings: AppSettings, zip_payload, tmp_path: Path
) -> None:
    router.add(f"{CDN}/versions.json", json={"versions": ["1.2.0"], "latest": "1.2.0"})
    router.redirect(f"{CDN}/1.2.0/src.zip", "https://storage.test/1.2.0.zip")
    router.add("https://storage.test/1.2.0.zip", content=zip_payload({"simpl-1.2.0/index.php": "<?php", "simpl-1.2.0/app/x.php": "x"}))
    selected = []

    result = await install(
        settings=settings,
        request=InstallRequest("site", "1.2.0"),
        transport=transport,
        hooks=InstallHooks(source_selected=selected.append),
        base_dir=tmp_path,
    )

    assert result.file_count == 2
    assert result.version == "1.2.0"
    assert selected[0].kind == "remote_archive"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["site"]
    assert (tmp_path / "site" / "app" / "x.php").is_file()


@pytest.mark.asyncio
async def test_tree_source_end_to_end(router, settings: AppSettings, make_transport, tmp_path: Path) -> None:
    tree = settings.model_copy(update={"source": "tree"})
    api = "https://api.test/repos/owner/repo/contents"
    router.add(f"{api}?ref=main", json=[{"name": "a.txt", "type": "file"}])
    router.add("https://raw.test/owner/repo/main/a.txt", content=b"a")

    result = await install(
        settings=tree,
        request=InstallRequest("tree-demo"),
        transport=make_transport(tree),
        base_dir=tmp_path,
    )

    assert result.source_kind == "remote_tree"
    assert result.file_count == 1


@pytest.mark.asyncio
async def test_invalid_name_fails_before_any_request(router, transport, settings: AppSettings, tmp_path: Path) -> None:
    states: list[InstallState] = []

    with pytest.raises(InvalidCharactersError):
        await install(
            settings=settings,
            request=InstallRequest("bad name"),
            transport=transport,
            hooks=InstallHooks(state_changed=states.append),
            base_dir=tmp_path,
        )

    assert states == [InstallState.IDLE, InstallState.FAILED]
    assert router.requests == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_existing_directory_is_rejected(router, transport, settings: AppSettings, tmp_path: Path) -> None:
    (tmp_path / "taken").mkdir()

    with pytest.raises(DirectoryExistsError):
        await install(settings=settings, request=InstallRequest("taken"), transport=transport, base_dir=tmp_path)


@pytest.mark.asyncio
async def test_unreachable_source_creates_nothing(router, transport, settings: AppSettings, tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailableError):
        await install(settings=settings, request=InstallRequest("demo"), transport=transport, base_dir=tmp_path)

    assert not (tmp_path / "demo").exists()


@pytest.mark.asyncio
async def test_download_failure_leaves_partial_directory_by_default(
    router, transport, settings: AppSettings, tmp_path: Path
) -> None:
    router.add(f"{CDN}/versions.json", json={"versions": [], "latest": ""})

    with pytest.raises(TransportError) as excinfo:
        await install(settings=settings, request=InstallRequest("demo", "9.9.9"), transport=transport, base_dir=tmp_path)

    assert excinfo.value.status_code == 404
    assert (tmp_path / "demo").is_dir()


@pytest.mark.asyncio
async def test_partial_directory_can_be_removed_on_failure(
    router, settings: AppSettings, make_transport, tmp_path: Path
) -> None:
    strict = settings.model_copy(update={"remove_partial_on_failure": True})
    router.add(f"{CDN}/versions.json", json={"versions": [], "latest": ""})
    router.add(f"{CDN}/1.0.0/src.zip", content=b"not a zip")

    with pytest.raises(ExtractionError) as excinfo:
        await install(settings=strict, request=InstallRequest("demo", "1.0.0"), transport=make_transport(strict), base_dir=tmp_path)

    assert excinfo.value.kind is ErrorKind.EXTRACTION
    assert not (tmp_path / "demo").exists()


def test_interactive_name_loop_retries_until_valid(tmp_path: Path) -> None:
    (tmp_path / "taken").mkdir()
    answers = iter(["", "bad name", "taken", "  fresh  "])
    rejected: list[NameValidationError] = []

    name = obtain_project_name(None, prompt=lambda: next(answers), on_invalid=rejected.append, base_dir=tmp_path)

    assert name == "fresh"
    assert [e.kind for e in rejected] == [
        ErrorKind.EMPTY_NAME,
        ErrorKind.INVALID_CHARACTERS,
        ErrorKind.DIRECTORY_EXISTS,
    ]


def test_supplied_name_is_not_retried(tmp_path: Path) -> None:
    def prompt() -> str:
        raise AssertionError("should not prompt")

    with pytest.raises(InvalidCharactersError):
        obtain_project_name("bad name", prompt=prompt, base_dir=tmp_path)


def test_missing_name_without_prompt_is_empty_name(tmp_path: Path) -> None:
    with pytest.raises(NameValidationError) as excinfo:
        obtain_project_name(None, base_dir=tmp_path)

    assert excinfo.value.kind is ErrorKind.EMPTY_NAME


@pytest.mark.asyncio
async def test_list_versions(router, transport, settings: AppSettings) -> None:
    router.add(f"{CDN}/versions.json", json={"versions": ["1.0.0"], "latest": "1.0.0"})

    manifest = await list_versions(settings=settings, transport=transport)

    assert manifest.latest == "1.0.0"


def test_supplied_valid_name_is_returned_without_prompting(tmp_path: Path) -> None:
    def prompt() -> str:
        raise AssertionError("should not prompt")

    assert obtain_project_name("fresh", prompt=prompt, base_dir=tmp_path) == "fresh"


@pytest.mark.asyncio
async def test_invalid_version_fails_before_creating_the_target(
    router, transport, settings: AppSettings, tmp_path: Path
) -> None:
    states: list[InstallState] = []

    with pytest.raises(InvalidVersionError):
        await install(
            settings=settings,
            request=InstallRequest("demo", "../1.0.0"),
            transport=transport,
            hooks=InstallHooks(state_changed=states.append),
            base_dir=tmp_path,
        )

    assert states[-1] is InstallState.FAILED
    assert router.requests == []
    assert not (tmp_path / "demo").exists()
