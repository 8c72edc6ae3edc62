from abc import ABC, abstractmethod
from typing import Any

import orjson

from clusterview.core.snapshot import ClusterSnapshot


class Serializer(ABC):
    """Abstract base class for one-way snapshot serialization."""

    @abstractmethod
    def serialize(self, data: Any) -> bytes:
        """Serializes data into bytes."""
        pass

    def serialize_snapshot(self, snapshot: ClusterSnapshot) -> bytes:
        """Serializes a cluster snapshot using its stable field layout."""
        return self.serialize(snapshot.to_dict())


class JsonSerializer(Serializer):
    """Serializer implementation using orjson for JSON serialization."""

    def __init__(self, *, indent: bool = True) -> None:
        self._option = orjson.OPT_INDENT_2 if indent else 0

    @property
    def content_type(self) -> str:
        return "application/json"

    def serialize(self, data: Any) -> bytes:
        """Serializes data to JSON bytes using orjson."""
        return orjson.dumps(data, option=self._option)
