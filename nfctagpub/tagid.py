"""The JSON message that announces a detected tag."""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class TagId:
    """A tag identifier together with the kind of tag it came from."""

    type: str
    id: str

    def to_json(self) -> str:
        """Serialise to compact JSON with keys in sorted order."""
        return json.dumps(
            {"type": self.type, "id": self.id},
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, text: str) -> TagId:
        """Parse a JSON object holding string fields ``type`` and ``id``."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("tag id JSON must be an object")
        try:
            tag_type, tag_id = data["type"], data["id"]
        except KeyError as exc:
            raise ValueError(f"tag id JSON is missing {exc.args[0]!r}") from None
        if not isinstance(tag_type, str) or not isinstance(tag_id, str):
            raise ValueError("tag id fields must be strings")
        return cls(type=tag_type, id=tag_id)