from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class InvocationIdentity(BaseModel):
    """Who is forwarding: the Lambda function and the current request."""

    model_config = ConfigDict(frozen=True)

    function_name: str
    aws_request_id: str | None = None

    @classmethod
    def from_context(cls, context: Any) -> InvocationIdentity:
        return cls(
            function_name=getattr(context, "function_name", None) or "unknown",
            aws_request_id=getattr(context, "aws_request_id", None),
        )

    @property
    def source(self) -> str:
        return f"lambda:{self.function_name}"

    def log_context(self) -> dict[str, Any]:
        return {
            "function_name": self.function_name,
            "aws_request_id": self.aws_request_id,
        }


class EventMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: float
    host: str
    source: str
    sourcetype: str
    index: str | None = None


class OutboundMessage(BaseModel):
    """One collector event built from a single logical entry."""

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: EventMetadata

    def to_hec_event(self) -> dict[str, Any]:
        event: dict[str, Any] = {
            "time": self.metadata.time,
            "host": self.metadata.host,
            "source": self.metadata.source,
            "sourcetype": self.metadata.sourcetype,
        }
        if self.metadata.index is not None:
            event["index"] = self.metadata.index
        event["event"] = self.content
        return event


class HecResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    code: int


class FlushSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int
    attempts: int = 0
    text: str | None = None
    code: int | None = None
