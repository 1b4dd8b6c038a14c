"""Agent contracts — Pydantic models for oracle responses and inter-agent data.

Defines the data structures that flow between agents:
  Oracle     -> Classifier:   ClassificationResult
  Oracle     -> EmailAgent:   EmailExtraction
  Oracle     -> JsonAgent:    JsonAnalysis
  Oracle     -> Generic:      GenericSummary
  Extractors -> RouterAgent:  ExtractionOutcome (wrapped in an attempt result)

Every oracle payload is validated against one of these models on receipt,
so the rest of the pipeline never touches an unchecked dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DocumentFormat = Literal["email", "json", "pdf", "text"]
DocumentIntent = Literal[
    "invoice", "rfq", "complaint", "regulation", "general", "quote_request", "support", "webhook",
]
EmailIntent = Literal[
    "rfq", "quote_request", "complaint", "support", "invoice_inquiry", "general", "urgent_request",
]
Urgency = Literal["low", "medium", "high"]
Sentiment = Literal["positive", "neutral", "negative"]
Priority = Literal["low", "medium", "high", "critical"]
ProcessingAgent = Literal["email_agent", "json_agent", "basic_extractor", "fallback_extractor"]


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Classifier output
# ---------------------------------------------------------------------------


class ClassificationResult(CamelModel):
    """Output of the Classifier agent — format + business intent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    format: DocumentFormat = Field(..., description="Detected content format")
    intent: DocumentIntent = Field(..., description="Detected business purpose")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Classification confidence 0.0-1.0")
    reasoning: str = Field(..., description="Brief explanation of classification decision")


# ---------------------------------------------------------------------------
# Email extraction (oracle response)
# ---------------------------------------------------------------------------


class EmailSender(CamelModel):
    name: str
    email: str
    company: str | None = None
    title: str | None = None


class QuantityItem(CamelModel):
    item: str
    quantity: float | None = None
    specifications: str | None = None


class EmailBusinessData(CamelModel):
    request_type: str
    requirements: list[str] = Field(default_factory=list)
    deadline: str | None = None
    budget: str | None = None
    quantities: list[QuantityItem] | None = None
    contact_preference: str | None = None
    key_dates: list[str] | None = None


class EmailExtraction(CamelModel):
    """Structured record the oracle returns for an email."""

    sender: EmailSender
    subject: str
    intent: EmailIntent
    urgency: Urgency
    extracted_data: EmailBusinessData
    conversation_id: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    sentiment: Sentiment


class EmailCommunication(CamelModel):
    subject: str
    intent: EmailIntent
    urgency: Urgency
    sentiment: Sentiment
    conversation_id: str


class LeadRecord(CamelModel):
    """Normalized CRM lead built from an email."""

    lead_id: str
    source: Literal["email"] = "email"
    timestamp: str
    contact: EmailSender
    communication: EmailCommunication
    opportunity: EmailBusinessData
    next_actions: list[str]
    confidence: float = Field(..., ge=0.0, le=1.0)
    priority: Priority


# ---------------------------------------------------------------------------
# JSON extraction (oracle response + FlowBit envelope)
# ---------------------------------------------------------------------------


class LineItem(CamelModel):
    description: str
    quantity: float | None = None
    unit_price: float | None = None
    total: float | None = None


class BusinessRecord(CamelModel):
    """Standardized business record carried in FlowBit ``data``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str | None = None
    type: str | None = None
    vendor: str | None = None
    amount: float | None = None
    currency: str | None = None
    description: str | None = None
    due_date: str | None = None
    status: str | None = None
    line_items: list[LineItem] | None = None


class JsonAnalysis(CamelModel):
    """Oracle analysis of a parsed JSON payload.

    ``extracted_data`` stays loose here; the FlowBit validation step decides
    whether it conforms.
    """

    extracted_data: dict[str, Any]
    detected_anomalies: list[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    business_context: str = ""


class FlowBitMetadata(CamelModel):
    confidence: float = Field(..., ge=0.0, le=1.0)
    processing_agent: str
    anomalies: list[str] | None = None
    business_context: str | None = None


class FlowBitRecord(CamelModel):
    """Fixed envelope for JSON-agent output (id/type/source/timestamp/data/metadata)."""

    id: str
    type: str
    source: str
    timestamp: str
    data: BusinessRecord
    metadata: FlowBitMetadata


# ---------------------------------------------------------------------------
# Generic fallback extraction (oracle response)
# ---------------------------------------------------------------------------


class Entity(CamelModel):
    type: str
    value: str


class GenericSummary(CamelModel):
    summary: str
    key_points: list[str] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    urgency: Urgency = "medium"
    action_items: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Extractor output -> RouterAgent
# ---------------------------------------------------------------------------


class ExtractionOutcome(BaseModel):
    """Output of exactly one extractor for one request."""

    normalized_record: dict[str, Any]
    anomalies: list[str] = Field(default_factory=list)
    conversation_id: str | None = None


@dataclass
class ExtractionSucceeded:
    agent: ProcessingAgent
    outcome: ExtractionOutcome


@dataclass
class ExtractionFailed:
    agent: ProcessingAgent
    error: str


ExtractionAttempt = ExtractionSucceeded | ExtractionFailed
