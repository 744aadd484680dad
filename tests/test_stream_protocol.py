"""
Tests for the UI message stream encoding and client-abort handling.
"""

import asyncio
import json

from app.api.stream_protocol import sse_event, ui_message_stream


async def _deltas(items, cancel_event=None, cancel_after=None):
    for i, item in enumerate(items):
        yield item
        if cancel_event is not None and i == cancel_after:
            cancel_event.set()
            return


def _collect(gen) -> list[str]:
    async def go():
        return [e async for e in gen]

    return asyncio.run(go())


def test_sse_event_format() -> None:
    assert sse_event({"type": "finish"}) == 'data: {"type": "finish"}\n\n'
    assert sse_event("[DONE]") == "data: [DONE]\n\n"


def test_message_id_is_passed_through() -> None:
    events = _collect(ui_message_stream(_deltas(["x"]), message_id="msg-1"))
    assert json.loads(events[0].removeprefix("data: ")) == {"type": "start", "messageId": "msg-1"}


def test_abort_ends_stream_without_finish() -> None:
    cancel = asyncio.Event()
    events = _collect(ui_message_stream(_deltas(["a", "b"], cancel, cancel_after=0), cancel))
    body = "".join(events)
    assert '"type": "abort"' in body
    assert '"type": "finish"' not in body
    assert events[-1] == "data: [DONE]\n\n"
