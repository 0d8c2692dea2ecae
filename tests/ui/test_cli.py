from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from schemarecon.adapters.documents import SchemaIRDocument, encode_document
from schemarecon.ui import cli
from tests.helpers.schemas import entity_document, ir_document, schema_pair

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda **_kwargs: None)


def _write_pair(tmp_path: Path) -> tuple[Path, Path]:
    a, b = schema_pair()
    path_a = tmp_path / "a.json"
    path_b = tmp_path / "b.json"
    path_a.write_text(encode_document(SchemaIRDocument.from_domain(a)))
    path_b.write_text(encode_document(SchemaIRDocument.from_domain(b)))
    return path_a, path_b


def test_version_command(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["version"])

    assert capsys.readouterr().out.strip()


def test_compare_propose_apply_pipeline(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path_a, path_b = _write_pair(tmp_path)
    comparison = tmp_path / "comparison.json"
    plan = tmp_path / "plan.json"
    store_uri = f"sqlite+pysqlite:///{tmp_path / 'store.db'}"

    cli.main(["--output", str(comparison), "compare", str(path_a), str(path_b)])
    cli.main(["-o", str(plan), "propose", str(comparison), "--prefer-source", "a"])
    capsys.readouterr()
    cli.main(["apply", str(plan), "--dry-run", "--store-uri", store_uri])

    result = json.loads(capsys.readouterr().out)
    assert json.loads(comparison.read_text())["statistics"]["similarity"] > 0
    assert json.loads(plan.read_text())["prefer_source"] == "a"
    assert result["dry_run"] is True
    assert result["plan_id"] == json.loads(plan.read_text())["plan_id"]


def test_compare_passes_options(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path_a, path_b = _write_pair(tmp_path)

    cli.main(
        [
            "compare",
            str(path_a),
            str(path_b),
            "--strategy",
            "hybrid",
            "--threshold",
            "0.9",
            "--ignore-field",
            "email",
        ]
    )

    result = json.loads(capsys.readouterr().out)
    assert result["config"] == {"threshold": 0.9, "strategy": "hybrid", "ignore_fields": ["email"]}
    assert result["changes"]["added"] == []


def test_build_ir_with_file_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    data = tmp_path / "data.csv"
    data.write_text("id|name\n1|Ann\n")
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"delimiter": "|", "entityName": "people"}))

    cli.main(
        [
            "build-ir",
            "--source-type",
            "file",
            "--format",
            "csv",
            "--path",
            str(data),
            "--config",
            f"@{config}",
        ]
    )

    document = json.loads(capsys.readouterr().out)
    assert document["entities"][0]["entity_name"] == "people"


def test_validate_reads_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    document = json.dumps(ir_document([entity_document("users", "id")]))
    monkeypatch.setattr("sys.stdin", _StringStdin(document))

    cli.main(["validate", "-"])

    assert json.loads(capsys.readouterr().out)["ok"] is True


def test_engine_errors_exit_with_error_document(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["compare", str(broken), str(broken)])

    assert excinfo.value.code == 1
    error = json.loads(capsys.readouterr().err)
    assert error["code"] == "JSON_ERROR"


def test_unsupported_source_exits_with_code(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["build-ir", "--source-type", "ftp", "--format", "json"])

    assert excinfo.value.code == 1
    assert json.loads(capsys.readouterr().err)["code"] == "UNSUPPORTED_SOURCE"


def test_unreadable_document_is_a_usage_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["validate", str(tmp_path / "absent.json")])

    assert excinfo.value.code == 2


def test_invalid_log_level_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--log-level", "loud", "version"])

    assert excinfo.value.code == 2


def test_missing_command_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 2


def test_rollback_command(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, str | None]] = []

    async def fake_restore(backup_ref: str, *, store_uri: str | None = None) -> None:
        calls.append((backup_ref, store_uri))

    monkeypatch.setattr(cli.app, "restore_backup", fake_restore)

    cli.main(["rollback", "backup-1", "--store-uri", "sqlite+pysqlite:///x.db"])

    assert calls == [("backup-1", "sqlite+pysqlite:///x.db")]


class _StringStdin:
    def __init__(self, text: str) -> None:
        self._text = text

    def read(self) -> str:
        return self._text
