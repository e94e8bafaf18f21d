"""Chat completion call log and token accounting for claude-relay."""

import copy
import time
import logging
from typing import Any, Dict, List, Optional
from collections import deque
from dataclasses import dataclass, field

from translator import Usage

logger = logging.getLogger(__name__)

MAX_LOGGED_TEXT = 500

# Call outcomes
COMPLETED = 'completed'
FAILED = 'failed'
STREAM_ERROR = 'stream_error'
CLIENT_DISCONNECTED = 'client_disconnected'


@dataclass
class ModelUsage:
    """Token totals for one requested model."""
    requests: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0

    def to_dict(self) -> dict:
        return {
            'requests': self.requests,
            'prompt_tokens': self.prompt_tokens,
            'completion_tokens': self.completion_tokens,
            'total_tokens': self.prompt_tokens + self.completion_tokens,
        }


@dataclass
class UsageStats:
    """Totals over every chat completion call since start or last reset."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    streamed_requests: int = 0
    stream_errors: int = 0
    client_disconnects: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_latency_ms: int = 0
    finish_reasons: Dict[str, int] = field(default_factory=dict)
    models: Dict[str, ModelUsage] = field(default_factory=dict)
    session_start: float = field(default_factory=time.time)

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 100.0
        return (self.successful_requests / self.total_requests) * 100

    @property
    def avg_latency_ms(self) -> float:
        if self.successful_requests == 0:
            return 0.0
        return self.total_latency_ms / self.successful_requests

    def add_tokens(self, model: str, usage: Usage):
        self.total_prompt_tokens += usage.prompt_tokens
        self.total_completion_tokens += usage.completion_tokens

        per_model = self.models.setdefault(model or 'unknown', ModelUsage())
        per_model.requests += 1
        per_model.prompt_tokens += usage.prompt_tokens
        per_model.completion_tokens += usage.completion_tokens

    def to_dict(self) -> dict:
        return {
            'total_requests': self.total_requests,
            'successful_requests': self.successful_requests,
            'failed_requests': self.failed_requests,
            'success_rate': round(self.success_rate, 1),
            'streamed_requests': self.streamed_requests,
            'stream_errors': self.stream_errors,
            'client_disconnects': self.client_disconnects,
            'total_prompt_tokens': self.total_prompt_tokens,
            'total_completion_tokens': self.total_completion_tokens,
            'total_tokens': self.total_prompt_tokens + self.total_completion_tokens,
            'avg_latency_ms': round(self.avg_latency_ms, 0),
            'finish_reasons': dict(self.finish_reasons),
            'models': {name: stats.to_dict() for name, stats in self.models.items()},
            'session_duration_seconds': round(time.time() - self.session_start, 0),
        }


class LoggerManager:
    """Keeps the most recent chat completion calls and running usage totals."""

    def __init__(self, max_logs: int = 100):
        self.max_logs = max_logs
        self.calls: deque = deque(maxlen=max_logs)
        self.usage = UsageStats()

    def record_call(
        self,
        status: int,
        duration_ms: int,
        model: str = '',
        stream: bool = False,
        outcome: Optional[str] = None,
        finish_reason: Optional[str] = None,
        usage: Optional[Usage] = None,
        request_data: Optional[Dict] = None,
        response_data: Optional[Dict] = None
    ):
        """
        Record one /v1/chat/completions call.

        Tokens are only counted for calls that reached the provider and
        produced usage; a stream the client abandoned still counts what
        was consumed before the disconnect.
        """
        usage = usage or Usage()
        if outcome is None:
            outcome = COMPLETED if status < 400 else FAILED

        entry = {
            'timestamp': time.time(),
            'status': status,
            'duration_ms': duration_ms,
            'model': model,
            'stream': stream,
            'outcome': outcome,
            'finish_reason': finish_reason,
            'usage': usage.to_dict(),
            'request': self._sanitize_for_log(request_data),
            'response': self._sanitize_for_log(response_data),
        }
        self.calls.appendleft(entry)

        stats = self.usage
        stats.total_requests += 1
        if stream:
            stats.streamed_requests += 1
        if outcome == COMPLETED:
            stats.successful_requests += 1
            stats.total_latency_ms += duration_ms
        else:
            stats.failed_requests += 1
        if outcome == STREAM_ERROR:
            stats.stream_errors += 1
        elif outcome == CLIENT_DISCONNECTED:
            stats.client_disconnects += 1

        if finish_reason:
            stats.finish_reasons[finish_reason] = stats.finish_reasons.get(finish_reason, 0) + 1
        if usage.total_tokens:
            stats.add_tokens(model, usage)

        token_info = ""
        if usage.total_tokens:
            token_info = f" | tokens: {usage.prompt_tokens}+{usage.completion_tokens}"
        logger.info(f"{model or '-'} {'stream' if stream else 'call'} -> {status} {outcome} "
                    f"({duration_ms}ms){token_info}")

    def get_calls(self, limit: int = 50) -> List[Dict]:
        """Get recent calls, newest first."""
        return list(self.calls)[:limit]

    def get_usage_stats(self) -> Dict:
        return self.usage.to_dict()

    def clear_logs(self):
        """Clear the call log (usage totals are kept)."""
        self.calls.clear()
        logger.info("Logs cleared")

    def reset_usage(self):
        self.usage = UsageStats()
        logger.info("Usage statistics reset")

    def _sanitize_for_log(self, data: Optional[Dict]) -> Optional[Dict]:
        """Truncate long message text and inline image data."""
        if not isinstance(data, dict):
            return None

        sanitized = copy.deepcopy(data)

        messages = sanitized.get('messages')
        for msg in messages if isinstance(messages, list) else []:
            if not isinstance(msg, dict):
                continue
            if isinstance(msg.get('content'), str):
                msg['content'] = _truncate(msg['content'])
            elif isinstance(msg.get('content'), list):
                for part in msg['content']:
                    _sanitize_part(part)

        for choice in sanitized.get('choices') or []:
            message = choice.get('message') if isinstance(choice, dict) else None
            if isinstance(message, dict) and isinstance(message.get('content'), str):
                message['content'] = _truncate(message['content'])

        return sanitized


def _truncate(text: str) -> str:
    if len(text) > MAX_LOGGED_TEXT:
        return text[:MAX_LOGGED_TEXT] + '... [truncated]'
    return text


def _sanitize_part(part: Any):
    if not isinstance(part, dict):
        return
    if isinstance(part.get('text'), str):
        part['text'] = _truncate(part['text'])
    image_url = part.get('image_url')
    if isinstance(image_url, dict) and isinstance(image_url.get('url'), str):
        image_url['url'] = _truncate(image_url['url'])
