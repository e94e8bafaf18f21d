"""Helpers for building fake Claude responses and SSE feeds."""

import json
from typing import Iterator, List, Optional


def sse_lines(*events: dict) -> List[bytes]:
    """Render Claude events the way requests' iter_lines yields them."""
    lines = []
    for event in events:
        lines.append(f"event: {event['type']}".encode('utf-8'))
        lines.append(f"data: {json.dumps(event)}".encode('utf-8'))
        lines.append(b'')
    return lines


def basic_stream_events() -> List[dict]:
    return [
        {'type': 'message_start',
         'message': {'id': 'msg_1', 'role': 'assistant', 'content': [],
                     'usage': {'input_tokens': 10, 'output_tokens': 1}}},
        {'type': 'content_block_start', 'index': 0, 'content_block': {'type': 'text', 'text': ''}},
        {'type': 'ping'},
        {'type': 'content_block_delta', 'index': 0, 'delta': {'type': 'text_delta', 'text': 'Hi'}},
        {'type': 'content_block_stop', 'index': 0},
        {'type': 'message_delta', 'delta': {'stop_reason': 'end_turn', 'stop_sequence': None},
         'usage': {'output_tokens': 3}},
        {'type': 'message_stop'},
    ]


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, body: Optional[dict] = None,
                 lines: Optional[List[bytes]] = None, text: str = ''):
        self.status_code = status_code
        self._body = body
        self._lines = lines or []
        self.text = text or (json.dumps(body) if body is not None else '')
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError('No JSON body')
        return self._body

    def iter_lines(self) -> Iterator[bytes]:
        for line in self._lines:
            if self.closed:
                return
            yield line

    def close(self):
        self.closed = True
