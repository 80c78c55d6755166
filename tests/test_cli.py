import pytest

from titleseed.cli import (
    SECRET_KEY_ENV,
    build_parser,
    build_pipeline_config,
    main,
    resolve_secret_key,
    run_upload,
    _upload_async,
)
from titleseed.errors import AdminAPIError, CredentialError
from titleseed.infra.config import ConfigAdapter
from titleseed.infra.logger import setup_logging
from titleseed.pipeline import StageCatalog, load_seed_data
from titleseed.schemas import PipelineConfig, ThrottleConfig

from .pipeline.utils import FakeAdminClient

NO_DELAY = PipelineConfig(
    throttle=ThrottleConfig(subtask_interval=0.0, stage_settle_delay=0.0)
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging("INFO", None, console=False)


# ---------------------------------------------------------------------------
# Argument handling
# ---------------------------------------------------------------------------


def test_resolve_secret_key_precedence(monkeypatch):
    adapter = ConfigAdapter({"titles": {"ABCD1": {"secret_key": "from-config"}}})

    monkeypatch.setenv(SECRET_KEY_ENV, "from-env")
    assert resolve_secret_key("from-arg", adapter, "ABCD1") == "from-arg"
    assert resolve_secret_key(None, adapter, "ABCD1") == "from-env"

    monkeypatch.delenv(SECRET_KEY_ENV)
    assert resolve_secret_key("  ", adapter, "ABCD1") == "from-config"
    assert resolve_secret_key(None, adapter, "OTHER") == ""


def test_build_pipeline_config_overrides():
    adapter = ConfigAdapter({"general": {"pipeline": {"item_timeout": 10}}})
    parser = build_parser()

    args = parser.parse_args(
        ["upload", "--title-id", "ABCD1", "--interval", "0.1", "--settle", "2"]
    )
    cfg = build_pipeline_config(adapter, "ABCD1", args)
    assert cfg.throttle.subtask_interval == 0.1
    assert cfg.throttle.stage_settle_delay == 2.0
    assert cfg.item_timeout == 10.0

    args = parser.parse_args(["upload", "--title-id", "ABCD1", "--timeout", "0"])
    assert build_pipeline_config(adapter, "ABCD1", args).item_timeout is None


def test_links_command(capsys):
    assert main(["links", "--title-id", "ABCD1"]) == 0

    out = capsys.readouterr().out
    assert "developer.playfab.com" in out
    assert "ABCD1" in out
    assert len(out.strip().splitlines()) == 6


def test_init_config(tmp_path, capsys):
    target = tmp_path / "settings.toml"

    assert main(["init-config", str(target)]) == 0
    assert "[general]" in target.read_text(encoding="utf-8")

    assert main(["init-config", str(target)]) == 1
    assert "[skip]" in capsys.readouterr().err

    assert main(["init-config", str(tmp_path), "--overwrite"]) == 0


def test_upload_without_secret_key_fails(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv(SECRET_KEY_ENV, raising=False)
    cfg = tmp_path / "settings.toml"
    cfg.write_text("[general]\n", encoding="utf-8")

    code = main(
        ["upload", "--title-id", "ABCD1", "--config", str(cfg), "--no-log-file"]
    )

    assert code == 1
    assert "No secret key" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Upload runs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_run_upload_completes():
    client = FakeAdminClient()
    catalog = StageCatalog(load_seed_data())

    assert await run_upload(client, catalog, NO_DELAY, "secret") is True
    assert len(client.calls) == 11


@pytest.mark.asyncio
async def test_run_upload_halts_without_retries(capsys):
    error = AdminAPIError("Invalid input parameters", status=400)
    client = FakeAdminClient(failures={"set_store_items:Armor": [error]})
    catalog = StageCatalog(load_seed_data())

    assert await run_upload(client, catalog, NO_DELAY, "secret") is False
    assert "Invalid input parameters" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_run_upload_retries_failed_items(capsys):
    error = AdminAPIError("Invalid input parameters", status=400)
    client = FakeAdminClient(failures={"set_store_items:Armor": [error]})
    catalog = StageCatalog(load_seed_data())

    ok = await run_upload(client, catalog, NO_DELAY, "secret", retries=1)

    assert ok is True
    assert client.ops().count("set_store_items:Armor") == 2
    out = capsys.readouterr().out
    assert "Creating stores... 60%" in out
    assert "Upload complete." in out


@pytest.mark.asyncio
async def test_upload_against_fake_api(admin_server, tmp_path, capsys):
    cfg = tmp_path / "settings.toml"
    cfg.write_text(
        "[general.pipeline]\n"
        "subtask_interval = 0.0\n"
        "stage_settle_delay = 0.0\n"
        "[titles.ABCD1]\n"
        f"api_base = \"{admin_server.make_url('/')}\"\n"
        "secret_key = \"k-123\"\n"
        "http2 = false\n",
        encoding="utf-8",
    )
    args = build_parser().parse_args(
        ["upload", "--title-id", "ABCD1", "--config", str(cfg), "--no-log-file"]
    )

    assert await _upload_async(args) == 0

    ops = [c["op"] for c in admin_server.calls]
    assert ops.count("SetStoreItems") == 3
    assert ops.count("SetTitleData") == 4
    assert ops[0] == "AddVirtualCurrencyTypes"
    assert ops[-1] == "UpdateCloudScript"
    assert {c["secret"] for c in admin_server.calls} == {"k-123"}

    out = capsys.readouterr().out
    assert "Creating currencies... 10%" in out
    assert "/r/t/ABCD1/economy/currency" in out


@pytest.mark.asyncio
async def test_upload_reports_api_failure(admin_server, tmp_path):
    admin_server.responses["SetCatalogItems"] = (
        400,
        {"code": 400, "error": "InvalidParams", "errorMessage": "Bad catalog"},
    )
    cfg = tmp_path / "settings.toml"
    cfg.write_text(
        "[general.pipeline]\n"
        "stage_settle_delay = 0.0\n"
        "[titles.ABCD1]\n"
        f"api_base = \"{admin_server.make_url('/')}\"\n",
        encoding="utf-8",
    )
    args = build_parser().parse_args(
        [
            "upload",
            "--title-id",
            "ABCD1",
            "--config",
            str(cfg),
            "--secret-key",
            "k",
            "--no-log-file",
        ]
    )

    assert await _upload_async(args) == 1
    assert [c["op"] for c in admin_server.calls] == [
        "AddVirtualCurrencyTypes",
        "SetCatalogItems",
    ]


@pytest.mark.asyncio
async def test_upload_async_requires_secret(tmp_path, monkeypatch):
    monkeypatch.delenv(SECRET_KEY_ENV, raising=False)
    cfg = tmp_path / "settings.toml"
    cfg.write_text("[general]\n", encoding="utf-8")
    args = build_parser().parse_args(
        ["upload", "--title-id", "ABCD1", "--config", str(cfg), "--no-log-file"]
    )

    with pytest.raises(CredentialError):
        await _upload_async(args)
