"""Token usage accumulator shared between the caller and the translators."""

from dataclasses import dataclass


@dataclass
class Usage:
    """
    Mutable token counters owned by the caller.

    Translators receive a reference and update it in place. For streams,
    read it only after the stream has ended or failed.
    """
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def set(self, prompt_tokens: int, completion_tokens: int):
        """Overwrite all counters; total is derived."""
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens

    def set_prompt(self, prompt_tokens: int):
        self.prompt_tokens = prompt_tokens
        self.total_tokens = self.prompt_tokens + self.completion_tokens

    def set_completion(self, completion_tokens: int):
        self.completion_tokens = completion_tokens
        self.total_tokens = self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict:
        return {
            'prompt_tokens': self.prompt_tokens,
            'completion_tokens': self.completion_tokens,
            'total_tokens': self.total_tokens,
        }
