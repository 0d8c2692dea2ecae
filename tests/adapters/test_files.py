from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from schemarecon.adapters.files import (
    entity_from_records,
    infer_value_type,
    load_file,
    load_memory,
    parse_csv,
)
from schemarecon.domain.model import FieldType, SourceType
from schemarecon.domain.ports import LoadRequest
from schemarecon.errors import InvalidInputError, JsonDocumentError, SourceIOError
from tests.helpers.schemas import entity_document, ir_document

if TYPE_CHECKING:
    from pathlib import Path


def _file_request(path: Path, format: str, **options: object) -> LoadRequest:  # noqa: A002
    return LoadRequest(source_type=SourceType.FILE, format=format, path=str(path), options=options)


def test_json_records_become_one_entity(tmp_path: Path) -> None:
    path = tmp_path / "users.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "email": "a@example.com"},
                {"id": 2, "email": None, "tags": ["x"]},
            ]
        )
    )

    schema = load_file(_file_request(path, "json"))

    assert schema.source_name == "users"
    assert schema.source_type is SourceType.FILE
    assert schema.source_format == "json"
    (entity,) = schema.entities
    assert entity.entity_name == "users"
    assert entity.field_names == ("id", "email", "tags")
    id_field, email, tags = entity.fields
    assert (id_field.declared_type, id_field.nullable) == (FieldType.INTEGER, False)
    assert (email.declared_type, email.nullable) == (FieldType.STRING, True)
    assert (tags.declared_type, tags.nullable) == (FieldType.JSON, True)


def test_json_object_of_record_arrays(tmp_path: Path) -> None:
    path = tmp_path / "shop.json"
    path.write_text(json.dumps({"users": [{"id": 1}], "orders": [{"id": 1, "total": 9.5}]}))

    schema = load_file(_file_request(path, "json", sourceName="shop-export"))

    assert schema.source_name == "shop-export"
    assert schema.entity_names == ("users", "orders")
    orders = schema.entity("orders")
    assert orders is not None
    total = orders.field("total")
    assert total is not None
    assert total.declared_type is FieldType.FLOAT


def test_json_schema_document_is_loaded_as_is(tmp_path: Path) -> None:
    path = tmp_path / "ir.json"
    document = ir_document([entity_document("users", "id")], source_name="crm")
    path.write_text(json.dumps(document))

    schema = load_file(_file_request(path, "json"))

    assert schema.source_name == "crm"
    assert schema.entity_names == ("users",)


def test_schema_document_without_header_fields_gets_defaults(tmp_path: Path) -> None:
    path = tmp_path / "bare.json"
    path.write_text(json.dumps({"entities": [entity_document("users", "id")]}))

    schema = load_file(_file_request(path, "json"))

    assert schema.source_name == "bare"
    assert schema.source_type is SourceType.FILE
    assert str(schema.ir_version) == "1.0"


def test_csv_header_and_type_inference(tmp_path: Path) -> None:
    path = tmp_path / "people.csv"
    path.write_text(
        "id,name,score,active,joined\n"
        "1,Ann,3.5,true,2024-01-01\n"
        "2,,4,false,2024-02-01\n"
    )

    schema = load_file(_file_request(path, "csv"))

    (entity,) = schema.entities
    types = {item.name: item.declared_type for item in entity.fields}
    assert types == {
        "id": FieldType.INTEGER,
        "name": FieldType.STRING,
        "score": FieldType.FLOAT,
        "active": FieldType.BOOLEAN,
        "joined": FieldType.DATE,
    }
    name = entity.field("name")
    assert name is not None
    assert name.nullable
    assert schema.source_format == "csv"


def test_csv_without_header_and_custom_delimiter(tmp_path: Path) -> None:
    path = tmp_path / "raw.csv"
    path.write_text("1;a\n2;b\n")

    schema = load_file(
        _file_request(path, "csv", delimiter=";", hasHeader=False, entityName="rows")
    )

    (entity,) = schema.entities
    assert entity.entity_name == "rows"
    assert entity.field_names == ("column_1", "column_2")


def test_csv_in_declared_encoding(tmp_path: Path) -> None:
    path = tmp_path / "legacy.csv"
    path.write_bytes("id,name\n1,Jos\u00e9\n".encode("latin-1"))

    (entity,) = load_file(_file_request(path, "csv", encoding="latin-1")).entities

    assert entity.field_names == ("id", "name")
    with pytest.raises(InvalidInputError, match="not valid utf-8"):
        load_file(_file_request(path, "csv"))


def test_csv_without_type_inference_uses_strings(tmp_path: Path) -> None:
    path = tmp_path / "plain.csv"
    path.write_text("id\n1\n")

    (entity,) = load_file(_file_request(path, "csv", inferTypes=False)).entities

    assert entity.fields[0].declared_type is FieldType.STRING


def test_empty_csv_is_invalid() -> None:
    with pytest.raises(InvalidInputError, match="empty"):
        parse_csv("\n\n")


def test_missing_file_is_an_io_error(tmp_path: Path) -> None:
    with pytest.raises(SourceIOError):
        load_file(_file_request(tmp_path / "absent.json", "json"))


def test_malformed_json_file_is_invalid_input(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(InvalidInputError, match="not valid JSON"):
        load_file(_file_request(path, "json"))


def test_scalar_json_is_an_unsupported_layout(tmp_path: Path) -> None:
    path = tmp_path / "scalar.json"
    path.write_text("42")

    with pytest.raises(InvalidInputError, match="Unsupported JSON layout"):
        load_file(_file_request(path, "json"))


def test_file_source_requires_path() -> None:
    with pytest.raises(InvalidInputError, match="path"):
        load_file(LoadRequest(source_type=SourceType.FILE, format="json"))


def test_memory_source_reads_inline_records() -> None:
    request = LoadRequest(
        source_type=SourceType.MEMORY,
        format="records",
        options={"data": '{"events": [{"id": 1, "at": "2024-01-01T10:00:00"}]}'},
    )

    schema = load_memory(request)

    assert schema.source_name == "memory"
    assert schema.source_type is SourceType.MEMORY
    assert schema.entity_names == ("events",)


def test_memory_source_requires_data() -> None:
    with pytest.raises(InvalidInputError, match="config.data"):
        load_memory(LoadRequest(source_type=SourceType.MEMORY, format="json"))


def test_memory_source_rejects_malformed_inline_json() -> None:
    request = LoadRequest(source_type=SourceType.MEMORY, format="json", options={"data": "{"})

    with pytest.raises(JsonDocumentError):
        load_memory(request)


def test_non_object_record_is_rejected() -> None:
    with pytest.raises(InvalidInputError, match="Record #1"):
        entity_from_records("users", [{"id": 1}, 5])


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, FieldType.BOOLEAN),
        (3, FieldType.INTEGER),
        (2.5, FieldType.FLOAT),
        ({"a": 1}, FieldType.JSON),
        ("2024-01-01T10:00:00", FieldType.DATETIME),
        ("6f1c1f4e-3f2a-4d8e-9a57-1c0f3b2f7e11", FieldType.UUID),
        ("hello", FieldType.STRING),
        ("", None),
        (None, None),
    ],
)
def test_infer_value_type(value: object, expected: FieldType | None) -> None:
    assert infer_value_type(value) is expected
