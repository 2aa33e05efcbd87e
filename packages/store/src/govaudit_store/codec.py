"""Transport encoding for values that cross the storage boundary.

Values are serialized to JSON text, then base64-encoded so they survive any
string-only transport unchanged.
"""

from __future__ import annotations

import base64
import json
from typing import Any


def encode_payload(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_payload(encoded: str) -> Any:
    return json.loads(base64.b64decode(encoded.encode("ascii")).decode("utf-8"))
