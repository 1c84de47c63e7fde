"""
Durable storage and serialization for checkpoint records.
"""
from .codec import Codec, JsonCodec, YamlCodec, get_codec
from .store import FileStateStore, MemoryStateStore, StateStore

__all__ = [
    "Codec",
    "JsonCodec",
    "YamlCodec",
    "get_codec",
    "StateStore",
    "FileStateStore",
    "MemoryStateStore",
]
