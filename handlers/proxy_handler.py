"""OpenAI chat completions handler - forwards to Claude Messages API."""

import json
import time
import logging
from functools import partial

import requests
from flask import Blueprint, request, jsonify, Response, stream_with_context

from logger_manager import CLIENT_DISCONNECTED, STREAM_ERROR
from translator import translate_request, translate_response, StreamTranslator, StreamPipeline, Usage
from translator.errors import DecodeError, TranslationError, map_error
from translator.images import fetch_image

logger = logging.getLogger(__name__)

proxy_bp = Blueprint('proxy', __name__)

CHAT_PATH = '/v1/chat/completions'


def get_config():
    """Get config from Flask app context."""
    from flask import current_app
    return current_app.config['RELAY_CONFIG']


def get_log_manager():
    """Get log manager from Flask app context."""
    from flask import current_app
    return current_app.config['LOG_MANAGER']


def _error_body(message: str, error_type: str, code=None) -> dict:
    return {'error': {'message': message, 'type': error_type, 'param': None, 'code': code}}


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


def _sse(payload: dict) -> bytes:
    return f"data: {json.dumps(payload)}\n\n".encode('utf-8')


def verify_api_key():
    """Verify the Authorization bearer token matches the gateway access token."""
    config = get_config()

    api_key = ''
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        api_key = auth_header[7:]

    # Also accept x-api-key
    if not api_key:
        api_key = request.headers.get('x-api-key', '')

    if not api_key:
        return False, _error_body('Missing API key', 'authentication_error', 'missing_api_key')

    if api_key != config.access_token:
        return False, _error_body('Invalid API key', 'authentication_error', 'invalid_api_key')

    return True, None


@proxy_bp.route(CHAT_PATH, methods=['POST'])
def chat_completions():
    """
    Handle OpenAI /v1/chat/completions requests.

    Translates to Claude format, forwards to the Claude endpoint,
    translates the response back to OpenAI format.
    """
    start_time = time.time()
    config = get_config()
    log_manager = get_log_manager()

    valid, error = verify_api_key()
    if not valid:
        log_manager.record_call(401, _elapsed_ms(start_time), response_data=error)
        return jsonify(error), 401

    openai_request = request.get_json(silent=True)
    if not isinstance(openai_request, dict) or not openai_request:
        error = _error_body('Request body must be a non-empty JSON object', 'invalid_request_error')
        log_manager.record_call(400, _elapsed_ms(start_time), response_data=error)
        return jsonify(error), 400

    model = openai_request.get('model', '')
    is_streaming = bool(openai_request.get('stream', False))
    messages = openai_request.get('messages')
    num_messages = len(messages) if isinstance(messages, list) else 0
    logger.info(f"-> {model} | msgs={num_messages} | stream={is_streaming}")

    record = partial(log_manager.record_call, model=str(model or ''), stream=is_streaming,
                     request_data=openai_request)

    image_fetcher = partial(
        fetch_image,
        timeout=config.image_fetch_timeout,
        verify=config.get_verify_ssl()
    )
    try:
        claude_request = translate_request(openai_request, image_fetcher, config.default_max_tokens)
    except TranslationError as e:
        logger.warning(f"Translation error: {e.message}")
        record(e.status_code, _elapsed_ms(start_time), response_data=e.to_dict())
        return jsonify(e.to_dict()), e.status_code

    headers = config.provider_headers(stream=is_streaming)

    try:
        if is_streaming:
            return _handle_streaming(claude_request, headers, openai_request,
                                     start_time, config, record)
        return _handle_non_streaming(claude_request, headers, openai_request,
                                     start_time, config, record)
    except requests.exceptions.Timeout:
        error = _error_body('Request to Claude timed out', 'timeout')
        record(504, _elapsed_ms(start_time), response_data=error)
        return jsonify(error), 504
    except requests.exceptions.ConnectionError as e:
        error = _error_body(f'Connection error: {e}', 'api_error')
        record(502, _elapsed_ms(start_time), response_data=error)
        return jsonify(error), 502


def _provider_error_response(response, start_time, record):
    """Relay a non-2xx Claude response, keeping its status code."""
    try:
        body = response.json()
    except ValueError:
        body = {}

    payload = body.get('error') if isinstance(body, dict) else None
    mapped = map_error(payload)
    if mapped is not None:
        error = mapped.to_dict()
    else:
        error = _error_body(response.text or 'Unknown error', 'api_error')

    record(response.status_code, _elapsed_ms(start_time), response_data=error)
    return jsonify(error), response.status_code


def _handle_non_streaming(claude_request, headers, openai_request, start_time, config, record):
    """Handle non-streaming request/response."""
    response = requests.post(
        config.messages_url,
        json=claude_request,
        headers=headers,
        timeout=config.request_timeout,
        verify=config.get_verify_ssl()
    )

    if not response.ok:
        return _provider_error_response(response, start_time, record)

    try:
        claude_response = response.json()
    except ValueError as e:
        error = _error_body(f'Invalid JSON from Claude: {e}', 'decode_error', 'decode_error')
        record(502, _elapsed_ms(start_time), response_data=error)
        return jsonify(error), 502

    usage = Usage()
    try:
        openai_response = translate_response(claude_response, openai_request, usage)
    except TranslationError as e:
        logger.warning(f"Response translation error: {e.message}")
        record(e.status_code, _elapsed_ms(start_time), response_data=e.to_dict())
        return jsonify(e.to_dict()), e.status_code

    finish_reason = openai_response['choices'][0]['finish_reason']
    record(200, _elapsed_ms(start_time), finish_reason=finish_reason, usage=usage,
           response_data=openai_response)

    logger.info(f"<- finish_reason={finish_reason} | "
                f"tokens={usage.prompt_tokens}+{usage.completion_tokens}")

    return jsonify(openai_response), 200


def _handle_streaming(claude_request, headers, openai_request, start_time, config, record):
    """Handle streaming request/response."""
    response = requests.post(
        config.messages_url,
        json=claude_request,
        headers=headers,
        timeout=config.stream_timeout,
        stream=True,
        verify=config.get_verify_ssl()
    )

    if not response.ok:
        try:
            return _provider_error_response(response, start_time, record)
        finally:
            response.close()

    usage = Usage()
    translator = StreamTranslator(openai_request.get('model', ''), usage)
    pipeline = StreamPipeline(
        translator,
        response.iter_lines(),
        on_close=response.close,
        max_queue=config.stream_queue_size
    )

    def generate():
        status = 200
        outcome = None
        finish_reason = None
        result = {'streaming': True}
        try:
            for chunk in pipeline:
                finish_reason = chunk['choices'][0]['finish_reason'] or finish_reason
                yield _sse(chunk)
            yield b"data: [DONE]\n\n"
            logger.info(f"<- stream complete | tokens={usage.prompt_tokens}+{usage.completion_tokens}")
        except GeneratorExit:
            status = 499
            outcome = CLIENT_DISCONNECTED
            logger.warning("Client disconnected during stream")
            raise
        except TranslationError as e:
            status = e.status_code
            outcome = STREAM_ERROR
            result = e.to_dict()
            logger.error(f"Streaming error: {e.message}")
            yield _sse(result)
        except requests.exceptions.RequestException as e:
            status = 502
            outcome = STREAM_ERROR
            result = _error_body(f'Stream read failed: {e}', 'api_error')
            logger.error(f"Streaming transport error: {e}")
            yield _sse(result)
        except Exception as e:
            status = 502
            outcome = STREAM_ERROR
            result = DecodeError(f'Stream failed: {e}').to_dict()
            logger.exception(f"Unexpected streaming failure: {e}")
            yield _sse(result)
        finally:
            pipeline.close()
            record(status, _elapsed_ms(start_time), outcome=outcome, finish_reason=finish_reason,
                   usage=usage, response_data=result)

    flask_response = Response(
        stream_with_context(generate()),
        content_type='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
            'Connection': 'keep-alive'
        }
    )
    # The generator may never start if the client leaves early
    flask_response.call_on_close(pipeline.close)
    return flask_response, 200
