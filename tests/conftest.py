"""Shared test fixtures for the document router test suite."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from docrouter.main import create_app
from docrouter.modules.routing.agents.router_agent import RouterAgent
from docrouter.modules.routing.memory import HistoryStore
from docrouter.modules.routing.oracle import Oracle, OracleRequest, OracleTask


class ScriptedOracle(Oracle):
    """Oracle returning canned answers per task.

    A scripted answer may be a dict (returned), an exception (raised), or a
    list of those (consumed one per call, last one repeats).
    """

    def __init__(self, responses: dict[OracleTask, Any] | None = None) -> None:
        self.responses: dict[OracleTask, Any] = dict(responses or {})
        self.requests: list[OracleRequest] = []

    def script(self, task: OracleTask, response: Any) -> None:
        self.responses[task] = response

    def calls(self, task: OracleTask) -> list[OracleRequest]:
        return [r for r in self.requests if r.task is task]

    async def generate(self, request: OracleRequest) -> dict[str, Any]:
        self.requests.append(request)
        response = self.responses.get(request.task)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if response is None:
            raise AssertionError(f"No scripted oracle response for {request.task.value}")
        if isinstance(response, BaseException):
            raise response
        return response


# ---------------------------------------------------------------------------
# Canned oracle answers
# ---------------------------------------------------------------------------


def classification(fmt: str = "email", intent: str = "rfq", confidence: float = 0.92) -> dict[str, Any]:
    return {
        "format": fmt,
        "intent": intent,
        "confidence": confidence,
        "reasoning": f"Looks like a {fmt} carrying a {intent}",
    }


def email_extraction(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "sender": {
            "name": "Dana Whitfield",
            "email": "dana.whitfield@acme-industrial.com",
            "company": "Acme Industrial",
            "title": "Procurement Lead",
        },
        "subject": "RFQ: 500 stainless flanges",
        "intent": "rfq",
        "urgency": "medium",
        "sentiment": "neutral",
        "extractedData": {
            "requestType": "Request for quotation",
            "requirements": ["ASTM A182 F316L", "Class 150 RF"],
            "deadline": "2026-11-15",
            "budget": "$25,000",
            "quantities": [{"item": "Flange DN50", "quantity": 500}],
            "contactPreference": "email",
            "keyDates": ["2026-11-15"],
        },
        "conversationId": "conv-acme-0042",
        "confidence": 0.91,
    }
    data.update(overrides)
    return data


def json_analysis(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "extractedData": {
            "id": "INV-2026-0193",
            "type": "invoice",
            "vendor": "Northwind Supplies",
            "amount": 1840.5,
            "currency": "EUR",
            "description": "Quarterly maintenance",
            "dueDate": "2026-11-30",
            "status": "pending",
            "lineItems": [
                {"description": "Maintenance visit", "quantity": 3, "unitPrice": 613.5, "total": 1840.5},
            ],
        },
        "detectedAnomalies": [],
        "confidence": 0.88,
        "businessContext": "Vendor invoice awaiting payment",
    }
    data.update(overrides)
    return data


def generic_summary(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "summary": "Customer asks about updated REACH documentation.",
        "keyPoints": ["Needs REACH declaration", "Before next shipment"],
        "entities": [{"type": "regulation", "value": "REACH"}],
        "urgency": "low",
        "actionItems": ["Send current REACH declaration"],
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle({
        OracleTask.CLASSIFY: classification(),
        OracleTask.EXTRACT_EMAIL: email_extraction(),
        OracleTask.EXTRACT_JSON: json_analysis(),
        OracleTask.SUMMARIZE: generic_summary(),
    })


@pytest.fixture
def history() -> HistoryStore:
    return HistoryStore(capacity=50)


@pytest.fixture
def router_agent(oracle: ScriptedOracle, history: HistoryStore) -> RouterAgent:
    return RouterAgent(oracle, history, excerpt_chars=500)


@pytest.fixture
async def client(oracle: ScriptedOracle, history: HistoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client talking to an app wired to the scripted oracle."""
    app = create_app(oracle=oracle, history=history)
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
