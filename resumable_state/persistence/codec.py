"""Serialization codecs turning checkpoint structures into bytes and back."""

import json
from abc import ABC, abstractmethod
from typing import Any

import yaml

from ..errors import MalformedRecordError

# Bytes of a bad record kept on the exception for diagnostics
_RAW_PREVIEW = 200


def _preview(data: bytes) -> str:
    return data[:_RAW_PREVIEW].decode("utf-8", errors="replace")


class Codec(ABC):
    """Base class for record codecs."""

    name: str = ""

    @abstractmethod
    def encode(self, structure: Any) -> bytes:
        """
        Serialize a structure.

        Raises:
            MalformedRecordError: if the structure holds values the codec
                cannot represent
        """
        pass

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """
        Deserialize bytes produced by encode().

        Raises:
            MalformedRecordError: if the bytes are not a valid document
        """
        pass


class JsonCodec(Codec):
    """JSON codec with sorted keys so equal structures encode identically."""

    name = "json"

    def __init__(self, indent: int = 2):
        self.indent = indent

    def encode(self, structure: Any) -> bytes:
        try:
            text = json.dumps(
                structure,
                indent=self.indent,
                sort_keys=True,
                ensure_ascii=False,
                allow_nan=False
            )
        except (TypeError, ValueError, RecursionError) as e:
            raise MalformedRecordError(
                f"Value not representable as JSON: {e}",
                expected_format="json"
            ) from e
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
            raise MalformedRecordError(
                f"Invalid JSON record: {e}",
                raw_data=_preview(data),
                expected_format="json"
            ) from e


class YamlCodec(Codec):
    """YAML codec restricted to plain data via safe_dump/safe_load."""

    name = "yaml"

    def encode(self, structure: Any) -> bytes:
        try:
            text = yaml.safe_dump(
                structure,
                sort_keys=True,
                allow_unicode=True,
                default_flow_style=False
            )
        except (yaml.YAMLError, RecursionError) as e:
            raise MalformedRecordError(
                f"Value not representable as YAML: {e}",
                expected_format="yaml"
            ) from e
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Any:
        try:
            return yaml.safe_load(data.decode("utf-8"))
        except (UnicodeDecodeError, yaml.YAMLError, RecursionError) as e:
            raise MalformedRecordError(
                f"Invalid YAML record: {e}",
                raw_data=_preview(data),
                expected_format="yaml"
            ) from e


_CODECS: dict[str, type[Codec]] = {
    JsonCodec.name: JsonCodec,
    YamlCodec.name: YamlCodec,
}


def get_codec(name: str) -> Codec:
    """Return a codec instance by name ("json" or "yaml")."""
    try:
        return _CODECS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unsupported codec: {name!r} (expected one of {', '.join(sorted(_CODECS))})"
        ) from None
