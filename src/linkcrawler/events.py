"""
Typed crawl events and their wire encodings.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from linkcrawler.models import LinkResult


class LogType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    PROGRESS = "progress"


@dataclass(frozen=True, slots=True)
class LogEvent:
    """Human-readable narration; not authoritative."""
    message: str
    type: LogType = LogType.INFO
    name = "log"

    def data(self) -> Dict[str, Any]:
        return {"message": self.message, "type": self.type.value}


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    done: int
    total: int
    current_url: str
    name = "progress"

    def data(self) -> Dict[str, Any]:
        return {"done": self.done, "total": self.total, "currentUrl": self.current_url}


@dataclass(frozen=True, slots=True)
class ResultEvent:
    result: LinkResult
    name = "result"

    def data(self) -> Dict[str, Any]:
        return self.result.to_dict()


@dataclass(frozen=True, slots=True)
class DoneEvent:
    """Terminal success signal."""
    total_links: int
    visited: int
    name = "done"

    def data(self) -> Dict[str, Any]:
        return {"totalLinks": self.total_links, "visited": self.visited}


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Terminal failure signal."""
    message: str
    name = "error"

    def data(self) -> Dict[str, Any]:
        return {"message": self.message}


CrawlEvent = Union[LogEvent, ProgressEvent, ResultEvent, DoneEvent, ErrorEvent]


def encode_sse(event: CrawlEvent) -> str:
    """Encode an event as a server-sent events frame."""
    payload = json.dumps(event.data(), ensure_ascii=False)
    return f"event: {event.name}\ndata: {payload}\n\n"


def encode_jsonl(event: CrawlEvent) -> str:
    """Encode an event as a single JSON line."""
    payload = {"event": event.name, "data": event.data()}
    return json.dumps(payload, ensure_ascii=False) + "\n"
