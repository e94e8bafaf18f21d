"""Producer/consumer stream pipeline."""

import threading

import pytest

from translator import StreamPipeline, StreamTranslator, Usage
from translator.errors import ProviderError

from helpers import basic_stream_events, sse_lines


def test_pipeline_yields_chunks_in_order_then_ends(usage):
    closed = []
    pipeline = StreamPipeline(
        StreamTranslator('m', usage),
        sse_lines(*basic_stream_events()),
        on_close=lambda: closed.append(True),
        max_queue=1,
    )

    chunks = list(pipeline)

    assert [c['choices'][0]['delta'] for c in chunks] == [{'role': 'assistant'}, {'content': 'Hi'}, {}]
    assert chunks[-1]['choices'][0]['finish_reason'] == 'stop'
    assert usage == Usage(prompt_tokens=10, completion_tokens=3, total_tokens=13)
    assert closed == [True]


def test_pipeline_reraises_provider_error_after_earlier_chunks(usage):
    events = basic_stream_events()[:4] + [
        {'type': 'error', 'error': {'type': 'overloaded_error', 'message': 'Overloaded'}},
    ] + basic_stream_events()[4:]
    pipeline = StreamPipeline(StreamTranslator('m', usage), sse_lines(*events))

    received = []
    with pytest.raises(ProviderError, match='Overloaded'):
        for chunk in pipeline:
            received.append(chunk)

    assert len(received) == 2


def test_pipeline_propagates_transport_errors(usage):
    def broken_feed():
        yield from sse_lines(basic_stream_events()[0])
        raise ConnectionError('reset by peer')

    pipeline = StreamPipeline(StreamTranslator('m', usage), broken_feed())

    with pytest.raises(ConnectionError):
        list(pipeline)


def test_close_stops_producer_reading(usage):
    released = threading.Event()
    read_after_close = []
    started = threading.Event()

    def endless_feed():
        yield from sse_lines(basic_stream_events()[0])
        while True:
            started.set()
            if released.is_set():
                read_after_close.append(True)
            yield b': keep-alive'
            released.wait(0.01)

    pipeline = StreamPipeline(
        StreamTranslator('m', usage),
        endless_feed(),
        on_close=released.set,
        max_queue=2,
    )

    iterator = iter(pipeline)
    first = next(iterator)
    assert first['choices'][0]['delta'] == {'role': 'assistant'}
    assert started.wait(2)

    iterator.close()

    assert released.is_set()
    pipeline._worker.join(2)
    assert not pipeline._worker.is_alive()
    # At most the line already in flight is read after close
    assert len(read_after_close) <= 1


def test_close_is_idempotent(usage):
    calls = []
    pipeline = StreamPipeline(StreamTranslator('m', usage), [], on_close=lambda: calls.append(1))

    pipeline.close()
    pipeline.close()

    assert calls == [1]
