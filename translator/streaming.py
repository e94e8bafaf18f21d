"""Translate Claude SSE streams to OpenAI chat.completion.chunk objects."""

import json
import logging
import time
import uuid
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Union

from .claude_to_openai import map_stop_reason
from .errors import DecodeError, map_error
from .events import EventType, StreamEvent
from .usage import Usage

logger = logging.getLogger(__name__)

EVENT_DATA_PREFIX = 'data: {"type"'
DATA_PREFIX_LEN = len('data: ')


class StreamPhase(Enum):
    INIT = 'init'
    STREAMING = 'streaming'
    CLOSED = 'closed'


class StreamTranslator:
    """
    Translates Claude streaming events to OpenAI streaming chunks.

    Claude format:
        event: message_start
        data: {"type":"message_start","message":{"role":"assistant","usage":{"input_tokens":10}}}

        event: content_block_delta
        data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hi"}}

        event: message_delta
        data: {"type":"message_delta","delta":{"stop_reason":"end_turn"},"usage":{"output_tokens":3}}

        event: message_stop
        data: {"type":"message_stop"}

    OpenAI format:
        data: {"object":"chat.completion.chunk","choices":[{"delta":{"content":"Hi"}}]}

    Only `data:` lines are looked at; `event:` lines, blank lines and
    keep-alives are dropped.
    """

    def __init__(self, model: str, usage: Usage):
        self.model = model
        self.usage = usage
        self.phase = StreamPhase.INIT

    @property
    def closed(self) -> bool:
        return self.phase is StreamPhase.CLOSED

    def translate_line(self, raw_line: Union[bytes, str]) -> List[Dict[str, Any]]:
        """
        Translate a single SSE line.

        Args:
            raw_line: One line of the Claude response body

        Returns:
            Zero or one OpenAI chunk dicts

        Raises:
            DecodeError: if the data payload is not valid JSON or
                has the wrong shape
            ProviderError: if the event carries an error payload
        """
        if self.closed:
            return []

        if isinstance(raw_line, bytes):
            try:
                line = raw_line.decode('utf-8')
            except UnicodeDecodeError as e:
                self.phase = StreamPhase.CLOSED
                raise DecodeError(f'Invalid UTF-8 in stream: {e}') from e
        else:
            line = raw_line

        if not line.startswith(EVENT_DATA_PREFIX):
            return []

        try:
            data = json.loads(line[DATA_PREFIX_LEN:])
        except json.JSONDecodeError as e:
            self.phase = StreamPhase.CLOSED
            logger.warning(f"Failed to parse stream JSON: {e}, line: {line[:200]}")
            raise DecodeError(f'Failed to decode stream event: {e}') from e

        try:
            event = StreamEvent.from_dict(data)
        except DecodeError:
            self.phase = StreamPhase.CLOSED
            logger.warning(f"Malformed stream event: {line[:200]}")
            raise

        error = map_error(event.error)
        if error is not None:
            self.phase = StreamPhase.CLOSED
            logger.error(f"Error in stream: {error.error_type}: {error.message}")
            raise error

        return self._handle_event(event)

    def _handle_event(self, event: StreamEvent) -> List[Dict[str, Any]]:
        if event.type is EventType.MESSAGE_STOP:
            self.phase = StreamPhase.CLOSED
            return []

        if event.type is EventType.OTHER:
            logger.debug(f"Ignoring stream event: {event.tag}")
            return []

        self.phase = StreamPhase.STREAMING
        chunk = self._build_chunk(event)

        if event.type is EventType.MESSAGE_START:
            self.usage.set_prompt(event.input_tokens)
        elif event.type is EventType.MESSAGE_DELTA:
            self.usage.set_completion(event.output_tokens)

        return [chunk]

    def _build_chunk(self, event: StreamEvent) -> Dict[str, Any]:
        delta = {}
        if event.role:
            delta['role'] = event.role
        if event.text:
            delta['content'] = event.text

        return {
            'id': f"chatcmpl-{uuid.uuid4().hex}",
            'object': 'chat.completion.chunk',
            'created': int(time.time()),
            'model': self.model,
            'choices': [{
                'index': event.index,
                'delta': delta,
                'finish_reason': map_stop_reason(event.stop_reason),
            }],
        }

    def iter_chunks(self, lines: Iterable[Union[bytes, str]]) -> Iterator[Dict[str, Any]]:
        """
        Yield chunks for a line feed until message_stop.

        Raises:
            DecodeError: if the feed ends before message_stop
        """
        for line in lines:
            yield from self.translate_line(line)
            if self.closed:
                return

        self.phase = StreamPhase.CLOSED
        raise DecodeError('Stream ended before message_stop')
