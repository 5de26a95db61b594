# src/webapp2worker/services/message_protocol_service.py
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from webapp2worker.errors import MalformedMessageError

logger = logging.getLogger(__name__)

CLICK_KEY = "button"


def _reject_constant(name: str):
    # JSON.parse in the worker has no NaN or Infinity literals.
    raise ValueError(f"non-standard JSON constant '{name}'")


class MessageProtocol:
    """
    Host-side counterpart of the message handler in the generated script.
    Messages are `<marker><json>` strings; the worker dispatches `customclick`
    when the JSON value holds a 'button' key at any depth.
    """

    def __init__(self, marker: str, max_depth: int = 32):
        self.marker = marker
        self.max_depth = max_depth

    def encode_message(self, value: Any) -> str:
        """Serializes a value into a message the worker accepts."""
        return self.marker + json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)

    def decode_message(self, raw: Any) -> Any:
        """
        Parses an inbound message.
        Raises MalformedMessageError for non-strings, a missing marker or invalid JSON.
        """
        if not isinstance(raw, str):
            raise MalformedMessageError(f"Message must be a string, got {type(raw).__name__}")
        if not raw.startswith(self.marker):
            raise MalformedMessageError("Message does not start with the marker token")
        try:
            return json.loads(raw[len(self.marker):], parse_constant=_reject_constant)
        except ValueError as e:
            raise MalformedMessageError(f"Message payload is not valid JSON: {e}") from e

    def is_click_message(self, raw: Any) -> bool:
        """
        True when the worker would dispatch `customclick` for this message.
        Malformed messages are ignored, as the worker ignores them.
        """
        try:
            value = self.decode_message(raw)
        except MalformedMessageError as e:
            logger.debug("Ignoring message: %s", e)
            return False
        return has_key(value, CLICK_KEY, self.max_depth)


def has_key(value: Any, key: str, max_depth: int = 32, _depth: int = 0, _seen: Optional[set] = None) -> bool:
    """
    Searches nested mappings (and the containers inside them) for `key`.
    The walk stops below `max_depth` levels and never revisits a container.
    """
    if not isinstance(value, (dict, list, tuple)) or _depth > max_depth:
        return False

    seen = _seen if _seen is not None else set()
    if id(value) in seen:
        return False
    seen.add(id(value))

    if isinstance(value, dict):
        if key in value:
            return True
        children = value.values()
    else:
        children = value

    return any(has_key(child, key, max_depth, _depth + 1, seen) for child in children)
