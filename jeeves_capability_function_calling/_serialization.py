"""JSON rendering of capability payloads for the synthesis prompt."""

import json
from datetime import datetime
from typing import Any


class JSONEncoderWithDatetime(json.JSONEncoder):
    """Encodes datetimes as ISO 8601 strings."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def to_canonical_json(data: Any) -> str:
    """Deterministic JSON: sorted keys, no insignificant whitespace.

    The same payload always renders to the same prompt text.
    """
    return json.dumps(
        data,
        cls=JSONEncoderWithDatetime,
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
    )
