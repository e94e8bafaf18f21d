"""Non-stream response translation and stop reason mapping."""

import pytest

from translator import Usage, translate_response
from translator.claude_to_openai import map_stop_reason
from translator.errors import DecodeError, ProviderError

REQUEST = {'model': 'claude-3-5-sonnet', 'messages': [{'role': 'user', 'content': 'hi'}]}


def _claude_response(**overrides):
    response = {
        'id': 'msg_01ABC',
        'type': 'message',
        'role': 'assistant',
        'content': [{'type': 'text', 'text': ' Hello there'}],
        'stop_reason': 'end_turn',
        'usage': {'input_tokens': 12, 'output_tokens': 5},
    }
    response.update(overrides)
    return response


def test_basic_response(usage):
    result = translate_response(_claude_response(), REQUEST, usage)

    assert result['id'] == 'msg_01ABC'
    assert result['object'] == 'chat.completion'
    assert result['model'] == 'claude-3-5-sonnet'
    assert isinstance(result['created'], int)
    assert len(result['choices']) == 1

    choice = result['choices'][0]
    assert choice['index'] == 0
    assert choice['message'] == {'role': 'assistant', 'content': 'Hello there'}
    assert choice['finish_reason'] == 'stop'


def test_only_one_leading_space_is_stripped(usage):
    result = translate_response(_claude_response(content=[{'type': 'text', 'text': '  two'}]), REQUEST, usage)
    assert result['choices'][0]['message']['content'] == ' two'


def test_usage_total_and_accumulator_overwrite():
    usage = Usage(prompt_tokens=100, completion_tokens=100, total_tokens=200)

    result = translate_response(_claude_response(), REQUEST, usage)

    assert result['usage'] == {'prompt_tokens': 12, 'completion_tokens': 5, 'total_tokens': 17}
    assert usage == Usage(prompt_tokens=12, completion_tokens=5, total_tokens=17)


def test_error_payload_raises_client_error_and_leaves_usage_alone():
    usage = Usage(prompt_tokens=1, completion_tokens=2, total_tokens=3)
    response = {
        'type': 'error',
        'error': {'type': 'rate_limit_error', 'message': 'Slow down'},
    }

    with pytest.raises(ProviderError) as exc_info:
        translate_response(response, REQUEST, usage)

    error = exc_info.value
    assert error.status_code == 400
    assert error.message == 'Slow down'
    assert error.to_dict()['error']['type'] == 'rate_limit_error'
    assert usage == Usage(prompt_tokens=1, completion_tokens=2, total_tokens=3)


def test_empty_content_yields_empty_text(usage):
    result = translate_response(_claude_response(content=[]), REQUEST, usage)
    assert result['choices'][0]['message']['content'] == ''


@pytest.mark.parametrize('stop_reason,expected', [
    ('end_turn', 'stop'),
    ('stop_sequence', 'stop'),
    ('max_tokens', 'length'),
    ('tool_use', 'tool_calls'),
    ('refusal', 'refusal'),
    ('', None),
    (None, None),
])
def test_map_stop_reason(stop_reason, expected):
    assert map_stop_reason(stop_reason) == expected


def test_null_text_and_token_counts_read_as_empty(usage):
    response = _claude_response(
        content=[{'type': 'text', 'text': None}],
        usage={'input_tokens': None, 'output_tokens': 4},
    )

    result = translate_response(response, REQUEST, usage)

    assert result['choices'][0]['message']['content'] == ''
    assert usage == Usage(prompt_tokens=0, completion_tokens=4, total_tokens=4)


@pytest.mark.parametrize('response', [
    ['not', 'an', 'object'],
    _claude_response(content='Hello'),
    _claude_response(content=['Hello']),
    _claude_response(content=[{'type': 'text', 'text': 7}]),
    _claude_response(stop_reason=1),
    _claude_response(usage=[12, 5]),
    _claude_response(usage={'input_tokens': '12', 'output_tokens': 5}),
    _claude_response(usage={'input_tokens': 12, 'output_tokens': True}),
])
def test_wrongly_shaped_response_is_a_decode_error(usage, response):
    with pytest.raises(DecodeError) as exc_info:
        translate_response(response, REQUEST, usage)

    assert exc_info.value.status_code == 502
    assert exc_info.value.to_dict()['error']['type'] == 'decode_error'
    assert usage == Usage()
