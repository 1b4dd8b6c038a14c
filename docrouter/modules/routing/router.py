"""Routing API — /agents/ and /memory/ endpoints.

Agents:
  - /agents/classifier  — full pipeline: classify -> extract -> record
  - /agents/email       — email agent only (not recorded)
  - /agents/json        — JSON agent only (not recorded)

Memory:
  - GET    /memory                            — all entries + stats
  - GET    /memory/{memory_id}                — single entry
  - GET    /memory/conversations/{conv_id}    — entries of one email conversation
  - DELETE /memory                            — clear
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from docrouter.modules.routing.agent_schemas import ExtractionOutcome
from docrouter.modules.routing.agents.router_agent import RouterAgent
from docrouter.modules.routing.errors import (
    ClassificationError,
    ExtractionError,
    InvalidInputError,
    MalformedJsonError,
    OracleConfigurationError,
)
from docrouter.modules.routing.memory import HistoryStore
from docrouter.modules.routing.schemas import (
    AgentExtractionResponse,
    AgentRequest,
    ClassifierRequest,
    HistoryEntry,
    MemoryClearedResponse,
    MemoryResponse,
    ResultEnvelope,
)

logger = structlog.get_logger()

agents_router = APIRouter(prefix="/agents", tags=["agents"])
memory_router = APIRouter(prefix="/memory", tags=["memory"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_history(request: Request) -> HistoryStore:
    return request.app.state.history


def get_router_agent(request: Request) -> RouterAgent:
    return request.app.state.router_agent


def require_oracle(request: Request) -> None:
    """Credential check happens per request, not at startup."""
    try:
        request.app.state.oracle.check_configured()
    except OracleConfigurationError as exc:
        logger.error("Oracle not configured", error=str(exc))
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _require_text(value: object, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(status_code=400, detail=f"{what} is required")
    return value


def _agent_response(outcome: ExtractionOutcome) -> AgentExtractionResponse:
    return AgentExtractionResponse(
        extracted_data=outcome.normalized_record,
        anomalies=outcome.anomalies or None,
        conversation_id=outcome.conversation_id,
    )


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


@agents_router.post(
    "/classifier",
    response_model=ResultEnvelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_oracle)],
)
async def classify_and_route(
    body: ClassifierRequest,
    router_agent: RouterAgent = Depends(get_router_agent),
) -> ResultEnvelope:
    """Classify the input, extract with the matching agent, and record the result."""
    try:
        return await router_agent.process(body.input, body.input_type)
    except (InvalidInputError, MalformedJsonError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (ClassificationError, ExtractionError) as exc:
        logger.error("Classifier agent error", error=str(exc))
        raise HTTPException(status_code=500, detail=f"Processing failed: {exc}") from exc
    except Exception as exc:
        logger.error("Classifier agent error", error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Processing failed: {exc}") from exc


@agents_router.post(
    "/email",
    response_model=AgentExtractionResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_oracle)],
)
async def extract_email(
    body: AgentRequest,
    router_agent: RouterAgent = Depends(get_router_agent),
) -> AgentExtractionResponse:
    """Run only the email agent on the input."""
    text = _require_text(body.input, "Email content")
    try:
        outcome = await router_agent.email_agent.extract(text)
    except Exception as exc:
        logger.error("Email agent error", error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Email processing failed: {exc}") from exc
    return _agent_response(outcome)


@agents_router.post(
    "/json",
    response_model=AgentExtractionResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_oracle)],
)
async def extract_json(
    body: AgentRequest,
    router_agent: RouterAgent = Depends(get_router_agent),
) -> AgentExtractionResponse:
    """Run only the JSON agent on the input."""
    text = _require_text(body.input, "JSON input")
    try:
        outcome = await router_agent.json_agent.extract(text)
    except MalformedJsonError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("JSON agent error", error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail=f"JSON processing failed: {exc}") from exc
    return _agent_response(outcome)


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


@memory_router.get("", response_model=MemoryResponse, response_model_exclude_none=True)
async def list_memory(history: HistoryStore = Depends(get_history)) -> MemoryResponse:
    entries = history.get_all()
    stats = history.get_stats()
    logger.info("Memory retrieved", entry_count=len(entries), total=stats.total)
    return MemoryResponse(entries=entries, stats=stats)


@memory_router.delete("", response_model=MemoryClearedResponse)
async def clear_memory(history: HistoryStore = Depends(get_history)) -> MemoryClearedResponse:
    history.clear()
    return MemoryClearedResponse()


@memory_router.get(
    "/conversations/{conversation_id}",
    response_model=list[HistoryEntry],
    response_model_exclude_none=True,
)
async def list_conversation(
    conversation_id: str,
    history: HistoryStore = Depends(get_history),
) -> list[HistoryEntry]:
    return history.get_by_conversation_id(conversation_id)


@memory_router.get("/{memory_id}", response_model=HistoryEntry, response_model_exclude_none=True)
async def get_memory_entry(
    memory_id: str,
    history: HistoryStore = Depends(get_history),
) -> HistoryEntry:
    entry = history.get(memory_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Memory entry not found")
    return entry
