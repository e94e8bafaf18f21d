"""API translation layer between OpenAI and Claude formats."""

from .openai_to_claude import translate_request
from .claude_to_openai import translate_response
from .streaming import StreamTranslator
from .pipeline import StreamPipeline
from .usage import Usage

__all__ = ['translate_request', 'translate_response', 'StreamTranslator', 'StreamPipeline', 'Usage']
