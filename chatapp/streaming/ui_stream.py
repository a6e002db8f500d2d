"""
UI Message Stream

Turns raw model text deltas into UI message stream parts
(start / text-delta / reasoning-delta / finish ...) and collects the
final message parts for persistence.

Wire format (one SSE event per part, terminated by [DONE]):
    data: {"type":"start","messageId":"..."}
    data: {"type":"start-step"}
    data: {"type":"text-start","id":"..."}
    data: {"type":"text-delta","id":"...","delta":"Hel"}
    data: {"type":"text-end","id":"..."}
    data: {"type":"finish-step"}
    data: {"type":"data-usage","data":{...}}
    data: {"type":"finish"}
    data: [DONE]
"""

from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from chatapp.schemas.chat import StreamPart

SSE_DONE = "data: [DONE]\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

SSE_MEDIA_TYPE = "text/event-stream; charset=utf-8"


def _partial_suffix_length(text: str, tag: str) -> int:
    """Length of the longest suffix of text that is a proper prefix of tag"""
    for size in range(min(len(tag) - 1, len(text)), 0, -1):
        if text.endswith(tag[:size]):
            return size
    return 0


class ThinkTagSplitter:
    """
    Incremental splitter for <think>...</think> reasoning markup

    Tags may be split across deltas; a possible partial tag at the end of
    the buffer is held back until the next feed() or flush().
    """

    def __init__(self, tag_name: str = "think"):
        self.open_tag = f"<{tag_name}>"
        self.close_tag = f"</{tag_name}>"
        self._buffer = ""
        self._in_reasoning = False

    def feed(self, text: str) -> List[Tuple[str, str]]:
        """
        Consume a delta

        Returns:
            List of (kind, text) segments where kind is "reasoning" or "text"
        """
        self._buffer += text
        segments = []

        while self._buffer:
            kind = "reasoning" if self._in_reasoning else "text"
            tag = self.close_tag if self._in_reasoning else self.open_tag
            index = self._buffer.find(tag)

            if index >= 0:
                if index:
                    segments.append((kind, self._buffer[:index]))
                self._buffer = self._buffer[index + len(tag):]
                self._in_reasoning = not self._in_reasoning
                continue

            held = _partial_suffix_length(self._buffer, tag)
            emit = self._buffer[:len(self._buffer) - held]
            if emit:
                segments.append((kind, emit))
            self._buffer = self._buffer[len(self._buffer) - held:]
            break

        return segments

    def flush(self) -> List[Tuple[str, str]]:
        """Release whatever is still buffered"""
        if not self._buffer:
            return []
        kind = "reasoning" if self._in_reasoning else "text"
        segments = [(kind, self._buffer)]
        self._buffer = ""
        return segments


class UIMessageStreamBuilder:
    """
    Builds the stream parts of one assistant message

    Usage:
        builder = UIMessageStreamBuilder(split_reasoning=True)
        parts = builder.start()
        parts += builder.push("<think>hmm</think>Hello")
        parts += builder.finish()
        builder.message_parts  # [{"type": "reasoning", ...}, {"type": "text", ...}]
    """

    def __init__(self, message_id: Optional[str] = None, split_reasoning: bool = False):
        self.message_id = message_id or str(uuid4())
        self._splitter = ThinkTagSplitter() if split_reasoning else None
        self._open_kind: Optional[str] = None
        self._open_id: Optional[str] = None
        self._message_parts: List[Dict[str, str]] = []
        self.started = False
        self.finished = False

    def start(self) -> List[StreamPart]:
        self.started = True
        return [
            StreamPart(type="start", message_id=self.message_id),
            StreamPart(type="start-step"),
        ]

    def push(self, delta: str) -> List[StreamPart]:
        """Add a model delta, returning the parts to emit"""
        if not delta:
            return []
        if self._splitter is None:
            return self._emit("text", delta)

        parts = []
        for kind, text in self._splitter.feed(delta):
            parts.extend(self._emit(kind, text))
        return parts

    def finish(self) -> List[StreamPart]:
        """Close any open block and the step"""
        parts = []
        if self._splitter is not None:
            for kind, text in self._splitter.flush():
                parts.extend(self._emit(kind, text))
        parts.extend(self._close_block())
        parts.append(StreamPart(type="finish-step"))
        self.finished = True
        return parts

    @property
    def message_parts(self) -> List[Dict[str, str]]:
        """Persistable parts accumulated so far"""
        return [dict(part) for part in self._message_parts]

    @property
    def text(self) -> str:
        """All text (excluding reasoning) produced so far"""
        return "".join(p["text"] for p in self._message_parts if p["type"] == "text")

    @property
    def reasoning(self) -> str:
        return "".join(p["text"] for p in self._message_parts if p["type"] == "reasoning")

    def _emit(self, kind: str, text: str) -> List[StreamPart]:
        parts = []
        if self._open_kind != kind:
            parts.extend(self._close_block())
            self._open_kind = kind
            self._open_id = str(uuid4())
            parts.append(StreamPart(type=f"{kind}-start", id=self._open_id))
            self._message_parts.append({"type": kind, "text": ""})

        self._message_parts[-1]["text"] += text
        parts.append(StreamPart(type=f"{kind}-delta", id=self._open_id, delta=text))
        return parts

    def _close_block(self) -> List[StreamPart]:
        if self._open_kind is None:
            return []
        part = StreamPart(type=f"{self._open_kind}-end", id=self._open_id)
        self._open_kind = None
        self._open_id = None
        return [part]
