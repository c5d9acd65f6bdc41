import json
from typing import Any, Optional

from pydantic import BaseModel


def _encode_fallback(obj: Any) -> Any:
    """Pydantic models (diagnostics, facts) dump themselves; anything else becomes its str()."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", exclude_none=True)
    return str(obj)


def to_json(data: Any, indent: Optional[int] = 2, ensure_ascii: bool = False) -> str:
    """
    Renders an extraction payload as JSON text.

    `indent=None` gives the single-line form the batch workers send back to
    the controller; the CLI pretty-prints with the user's --indent.
    """
    return json.dumps(data, ensure_ascii=ensure_ascii, indent=indent, default=_encode_fallback)


def from_json(text: str) -> Any:
    """Reads a payload written by to_json (e.g. a worker's result line)."""
    return json.loads(text)
