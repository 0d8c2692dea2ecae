from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from schemarecon.adapters.ingestion import SUPPORTED_FORMATS, load_schema, make_request
from schemarecon.domain.model import SourceType
from schemarecon.errors import ErrorCode, UnsupportedFormatError, UnsupportedSourceError

if TYPE_CHECKING:
    from pathlib import Path


def test_make_request_normalizes_source_and_format() -> None:
    request = make_request(" FILE ", "Json", "/tmp/x.json", {"sourceName": "x"})

    assert request.source_type is SourceType.FILE
    assert request.format == "json"
    assert request.options == {"sourceName": "x"}


def test_unknown_source_type() -> None:
    with pytest.raises(UnsupportedSourceError) as excinfo:
        make_request("ftp", "json")

    assert excinfo.value.code is ErrorCode.UNSUPPORTED_SOURCE
    assert "file" in excinfo.value.message


def test_format_not_supported_by_source() -> None:
    with pytest.raises(UnsupportedFormatError) as excinfo:
        make_request("file", "sqlite")

    assert excinfo.value.details == {"source_type": "file", "format": "sqlite"}


def test_every_source_type_has_formats() -> None:
    assert set(SUPPORTED_FORMATS) == set(SourceType)
    assert "postgres" in SUPPORTED_FORMATS[SourceType.DB]


def test_load_schema_dispatches_to_file_loader(tmp_path: Path) -> None:
    path = tmp_path / "items.json"
    path.write_text(json.dumps([{"sku": "A1"}]))

    schema = load_schema(make_request("file", "json", str(path)))

    assert schema.entity_names == ("items",)
