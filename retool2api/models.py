"""Pydantic models for API request/response types and Retool domain records."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: str
    content: Union[str, List[Dict[str, Any]]]


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    stream: bool = False
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None


class ModelInfo(BaseModel):
    id: str
    object: str = "model"
    created: int
    owned_by: str
    name: str


class ModelList(BaseModel):
    object: str = "list"
    data: List[ModelInfo]


class ChatCompletionChoice(BaseModel):
    message: ChatMessage
    index: int = 0
    finish_reason: str = "stop"


class ChatCompletionResponse(BaseModel):
    id: str = Field(default_factory=lambda: f"chatcmpl-{uuid.uuid4().hex}")
    object: str = "chat.completion"
    created: int = Field(default_factory=lambda: int(time.time()))
    model: str
    choices: List[ChatCompletionChoice]
    usage: Dict[str, int] = Field(
        default_factory=lambda: {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        }
    )


class StreamChoice(BaseModel):
    delta: Dict[str, Any] = Field(default_factory=dict)
    index: int = 0
    finish_reason: Optional[str] = None


class StreamResponse(BaseModel):
    id: str = Field(default_factory=lambda: f"chatcmpl-{uuid.uuid4().hex}")
    object: str = "chat.completion.chunk"
    created: int = Field(default_factory=lambda: int(time.time()))
    model: str
    choices: List[StreamChoice]


class RetoolOperation(str, Enum):
    """Upstream call that produced a RetoolError."""

    AGENT_QUERY = "agent_query"
    THREAD_CREATE = "thread_create"
    MESSAGE_SEND = "message_send"
    MESSAGE_GET = "message_get"


class RetoolError(BaseModel):
    """Structured record of one failed Retool API call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    operation: RetoolOperation
    account: str
    status_code: Optional[int] = Field(default=None, serialization_alias="statusCode")
    message: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class ErrorDetail(BaseModel):
    message: str
    type: str
    attempts: Optional[int] = None
    details: Optional[List[RetoolError]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: RetoolError


Result = Union[Ok[T], Err]


@dataclass(frozen=True)
class RetoolAgent:
    """An agent configured in a Retool workspace, bound to one model."""

    id: str
    name: str
    model: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RetoolAgent":
        model = (data.get("data") or {}).get("model") or "unknown"
        return cls(id=str(data["id"]), name=data.get("name") or "", model=model)


@dataclass
class RetoolAccount:
    """A Retool workspace login with rotation metadata."""

    domain_name: str
    x_xsrf_token: str
    access_token: str
    is_valid: bool = True
    last_used: float = 0.0
    error_count: int = 0
    agents: List[RetoolAgent] = field(default_factory=list)


@dataclass
class ModelRecord:
    """A model family exposed to clients, backed by one or more agents."""

    id: str
    name: str
    model_name: str
    owned_by: str
    agents: List[str] = field(default_factory=list)
