"""API and history schemas for the routing module."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from docrouter.modules.routing.agent_schemas import CamelModel, ClassificationResult


# ---------------------------------------------------------------------------
# Shared history
# ---------------------------------------------------------------------------


class NewHistoryEntry(CamelModel):
    """Everything a HistoryEntry carries except the store-assigned id + timestamp."""

    source_excerpt: str
    format: str
    intent: str
    normalized_record: dict[str, Any] = Field(default_factory=dict)
    conversation_id: str | None = None
    anomalies: list[str] | None = None
    processing_agent: str


class HistoryEntry(NewHistoryEntry):
    """A single past processing outcome. Immutable once stored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    timestamp: datetime


class HistoryStats(CamelModel):
    total: int = 0
    by_format: dict[str, int] = Field(default_factory=dict)
    by_intent: dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Pipeline result
# ---------------------------------------------------------------------------


class ResultEnvelope(CamelModel):
    """Unified result of RouterAgent.process()."""

    classification: ClassificationResult
    extracted_data: dict[str, Any]
    memory_id: str
    timestamp: datetime
    anomalies: list[str] | None = Field(None, description="Omitted when nothing was flagged")
    processing_agent: str


# ---------------------------------------------------------------------------
# API request / response schemas
# ---------------------------------------------------------------------------


class ClassifierRequest(CamelModel):
    """Body for POST /agents/classifier. ``input`` is checked by the pipeline, not here."""

    input: Any = None
    input_type: str | None = None


class AgentRequest(CamelModel):
    """Body for POST /agents/email and POST /agents/json."""

    input: Any = None


class AgentExtractionResponse(CamelModel):
    extracted_data: dict[str, Any]
    anomalies: list[str] | None = None
    conversation_id: str | None = None


class MemoryResponse(CamelModel):
    entries: list[HistoryEntry]
    stats: HistoryStats
    success: bool = True


class MemoryClearedResponse(CamelModel):
    message: str = "Memory cleared successfully"
    success: bool = True
