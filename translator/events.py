"""Typed view of Claude streaming events."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import DecodeError


class EventType(Enum):
    MESSAGE_START = 'message_start'
    CONTENT_BLOCK_DELTA = 'content_block_delta'
    MESSAGE_DELTA = 'message_delta'
    MESSAGE_STOP = 'message_stop'
    OTHER = 'other'

    @classmethod
    def from_tag(cls, tag: Any) -> 'EventType':
        for member in cls:
            if member.value == tag and member is not cls.OTHER:
                return member
        return cls.OTHER


@dataclass
class StreamEvent:
    """
    One decoded Claude SSE data payload.

    Fields are flattened from the wire shapes:
        message_start:       {"message": {"role", "usage": {"input_tokens"}}}
        content_block_delta: {"index", "delta": {"text"}}
        message_delta:       {"delta": {"stop_reason"}, "usage": {"output_tokens"}}
    """
    type: EventType
    tag: str = ''
    index: int = 0
    text: str = ''
    stop_reason: Optional[str] = None
    role: str = ''
    input_tokens: int = 0
    output_tokens: int = 0
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'StreamEvent':
        """
        Raises:
            DecodeError: if a field has the wrong JSON type
        """
        if not isinstance(data, dict):
            raise DecodeError('Stream event must be a JSON object')

        delta = _object(data, 'delta')
        message = _object(data, 'message')
        message_usage = _object(message, 'usage')
        usage = _object(data, 'usage')

        return cls(
            type=EventType.from_tag(data.get('type')),
            tag=str(data.get('type') or ''),
            index=_integer(data, 'index'),
            text=_string(delta, 'text'),
            stop_reason=_string(delta, 'stop_reason') or None,
            role=_string(message, 'role'),
            input_tokens=_integer(message_usage, 'input_tokens'),
            output_tokens=_integer(usage, 'output_tokens'),
            error=data.get('error') or None,
        )


def _object(parent: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f'Stream event field "{key}" must be an object')
    return value


def _string(parent: Dict[str, Any], key: str) -> str:
    value = parent.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise DecodeError(f'Stream event field "{key}" must be a string')
    return value


def _integer(parent: Dict[str, Any], key: str) -> int:
    value = parent.get(key)
    if value is None:
        return 0
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f'Stream event field "{key}" must be an integer')
    return value
