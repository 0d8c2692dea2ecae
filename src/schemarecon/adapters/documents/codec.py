"""JSON text <-> document model helpers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import BaseModel


def decode_json(text: str | bytes) -> object:
    """Parse JSON text; ``json.JSONDecodeError`` propagates to the caller."""

    return json.loads(text)


def parse_document[M: BaseModel](model: type[M], text: str | bytes | None) -> M:
    """Decode ``text`` and validate it as ``model``; blank text validates as ``{}``."""

    if text is None or (isinstance(text, str) and not text.strip()):
        return model.model_validate({})
    return model.model_validate(decode_json(text))


def encode_document(document: BaseModel) -> str:
    return document.model_dump_json(indent=2)
