from __future__ import annotations

import json
from pathlib import Path

from arweave_uploader.config import MetadataConfig
from arweave_uploader.metadata import build_url_map, lookup_url, run_update_metadata


def _write_results(path: Path, files, key: str = "files") -> Path:
    path.write_text(json.dumps({"manifestId": "m", key: files}), encoding="utf-8")
    return path


def _record(name: str, url: str) -> dict:
    return {"fileName": name, "url": url, "id": name}


def test_usage_when_results_file_missing(capsys) -> None:
    assert run_update_metadata(MetadataConfig(results_file=None)) == 0
    assert "Usage:" in capsys.readouterr().out


def test_results_without_file_list_fail(tmp_path: Path, caplog) -> None:
    results = tmp_path / "results.json"
    results.write_text(json.dumps({"manifestId": "m"}), encoding="utf-8")
    (tmp_path / "metadata").mkdir()

    code = run_update_metadata(MetadataConfig(results_file=results, metadata_dir=tmp_path / "metadata"))

    assert code == 1
    assert "missing 'files' or 'images'" in caplog.text


def test_updates_image_and_preserves_other_fields(tmp_path: Path, capsys) -> None:
    metadata_dir = tmp_path / "metadata"
    metadata_dir.mkdir()
    (metadata_dir / "cat").write_text(
        json.dumps({"name": "Cat é", "image": "old", "attributes": [{"trait": "x"}]}),
        encoding="utf-8",
    )
    results = _write_results(tmp_path / "results.json", [_record("cat.jpg", "https://arweave.net/m/cat.jpg")])

    code = run_update_metadata(MetadataConfig(results_file=results, metadata_dir=metadata_dir))

    assert code == 0
    text = (metadata_dir / "cat").read_text(encoding="utf-8")
    assert json.loads(text) == {
        "name": "Cat é",
        "image": "https://arweave.net/m/cat.jpg",
        "attributes": [{"trait": "x"}],
    }
    assert text.startswith('{\n  "name": "Cat é"')
    out = capsys.readouterr().out
    assert "[UPDATED] cat" in out
    assert "Done. Updated: 1, Skipped: 0" in out


def test_second_run_is_idempotent(tmp_path: Path, capsys) -> None:
    metadata_dir = tmp_path / "metadata"
    metadata_dir.mkdir()
    for name in ("a", "b"):
        (metadata_dir / name).write_text(json.dumps({"image": ""}), encoding="utf-8")
    results = _write_results(
        tmp_path / "results.json",
        [_record("a.jpg", "https://x/a.jpg"), _record("b.jpg", "https://x/b.jpg")],
    )
    config = MetadataConfig(results_file=results, metadata_dir=metadata_dir)

    run_update_metadata(config)
    snapshot = {path.name: path.read_bytes() for path in metadata_dir.iterdir()}
    capsys.readouterr()
    run_update_metadata(config)

    assert {path.name: path.read_bytes() for path in metadata_dir.iterdir()} == snapshot
    out = capsys.readouterr().out
    assert out.count("(already up to date)") == 2
    assert "Done. Updated: 0, Skipped: 0" in out


def test_unmatched_items_are_skipped(tmp_path: Path, capsys, caplog) -> None:
    metadata_dir = tmp_path / "metadata"
    metadata_dir.mkdir()
    (metadata_dir / "orphan").write_text("not even json", encoding="utf-8")
    results = _write_results(tmp_path / "results.json", [_record("a.jpg", "https://x/a.jpg")], key="images")

    code = run_update_metadata(MetadataConfig(results_file=results, metadata_dir=metadata_dir))

    assert code == 0
    assert "[SKIP] No URL found for: orphan" in caplog.text
    assert "Skipped: 1" in capsys.readouterr().out


def test_join_key_strips_final_extension_only() -> None:
    url_map = build_url_map([_record("cat.final.jpg", "https://x/cat.final.jpg")])
    assert url_map == {"cat.final": "https://x/cat.final.jpg"}
    assert lookup_url(url_map, "cat.final") == "https://x/cat.final.jpg"
    assert lookup_url(url_map, "cat.final.json") == "https://x/cat.final.jpg"
    assert lookup_url(url_map, "cat") is None


def test_later_records_win() -> None:
    url_map = build_url_map([_record("cat.png", "first"), _record("cat.jpg", "second")])
    assert url_map["cat"] == "second"


def test_malformed_metadata_is_fatal(tmp_path: Path, caplog) -> None:
    metadata_dir = tmp_path / "metadata"
    metadata_dir.mkdir()
    (metadata_dir / "cat").write_text("{broken", encoding="utf-8")
    results = _write_results(tmp_path / "results.json", [_record("cat.jpg", "https://x/cat.jpg")])

    code = run_update_metadata(MetadataConfig(results_file=results, metadata_dir=metadata_dir))

    assert code == 1
    assert "Could not read metadata file" in caplog.text


def test_missing_metadata_dir_is_fatal(tmp_path: Path) -> None:
    results = _write_results(tmp_path / "results.json", [])
    code = run_update_metadata(MetadataConfig(results_file=results, metadata_dir=tmp_path / "nope"))
    assert code == 1
