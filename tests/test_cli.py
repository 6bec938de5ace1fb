from __future__ import annotations

from pathlib import Path

import pytest

from arweave_uploader import cli
from arweave_uploader.config import DEFAULT_APP_NAME, DEFAULT_CONTENT_TYPE, TurboConfig, resolve_wallet_path

from conftest import write_image


def test_parse_args_defaults() -> None:
    args = cli.parse_args(["upload"])
    assert args.input_dir == Path("./images-optimized")
    assert args.app_name == DEFAULT_APP_NAME
    assert args.content_type == DEFAULT_CONTENT_TYPE
    assert args.no_fallback is False

    args = cli.parse_args(["update-metadata"])
    assert args.results_file is None
    assert args.metadata_dir == Path("./metadata")


def test_parse_args_positionals() -> None:
    args = cli.parse_args(["estimate", "raw", "small"])
    assert args.original_dir == Path("raw")
    assert args.optimized_dir == Path("small")


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_optimize_subcommand(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    write_image(tmp_path / "src" / "a.png", fmt="PNG")

    assert cli.main(["optimize", "src", "dst"]) == 0
    assert (tmp_path / "dst" / "a.jpg").exists()


def test_single_command_entry_point(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert cli.update_metadata_main([]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_upload_reads_wallet_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ARWEAVE_WALLET", str(tmp_path / "missing-wallet.json"))
    write_image(tmp_path / "images-optimized" / "a.jpg", fmt="JPEG")

    assert cli.upload_main([]) == 1
    assert list(tmp_path.glob("upload-results-*.json")) == []


def test_wallet_path_resolution() -> None:
    assert resolve_wallet_path({}) == Path("./wallet.json")
    assert resolve_wallet_path({"ARWEAVE_WALLET": "/keys/w.json"}) == Path("/keys/w.json")


def test_turbo_endpoints_from_environment() -> None:
    config = TurboConfig.from_env({"TURBO_UPLOAD_URL": "http://localhost:3000/"})
    assert config.upload_url == "http://localhost:3000"
    assert config.payment_url == "https://payment.ardrive.io"
