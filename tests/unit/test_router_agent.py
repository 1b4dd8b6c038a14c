"""Unit tests for the RouterAgent pipeline (classify -> dispatch -> record)."""

from __future__ import annotations

import pytest

from conftest import ScriptedOracle, classification, email_extraction
from docrouter.modules.routing.agents.generic import GenericExtractor
from docrouter.modules.routing.agents.router_agent import RouterAgent
from docrouter.modules.routing.errors import (
    ClassificationError,
    ExtractionError,
    InvalidInputError,
    MalformedJsonError,
    OracleError,
)
from docrouter.modules.routing.memory import HistoryStore
from docrouter.modules.routing.oracle import OracleTask

EMAIL = (
    "From: Dana Whitfield <dana.whitfield@acme-industrial.com>\n"
    "Subject: RFQ: 500 stainless flanges\n\n"
    "Please quote 500 DN50 flanges, ASTM A182 F316L, by November 15."
)


@pytest.mark.parametrize("bad_input", ["", "   \n", None, 42, ["a list"]])
async def test_invalid_input_rejected(router_agent: RouterAgent, oracle: ScriptedOracle, bad_input: object) -> None:
    with pytest.raises(InvalidInputError):
        await router_agent.process(bad_input)
    assert oracle.requests == []


async def test_email_routed_to_email_agent(router_agent: RouterAgent, history: HistoryStore) -> None:
    envelope = await router_agent.process(EMAIL, "email")

    assert envelope.processing_agent == "email_agent"
    assert envelope.classification.format == "email"
    assert envelope.extracted_data["source"] == "email"
    assert envelope.anomalies is None

    entry = history.get(envelope.memory_id)
    assert entry is not None
    assert entry.format == "email"
    assert entry.intent == "rfq"
    assert entry.processing_agent == "email_agent"
    assert entry.conversation_id == "conv-acme-0042"
    assert entry.anomalies is None
    assert entry.normalized_record == envelope.extracted_data


async def test_email_anomalies_reach_envelope_and_history(
    router_agent: RouterAgent, oracle: ScriptedOracle, history: HistoryStore,
) -> None:
    oracle.script(OracleTask.EXTRACT_EMAIL, email_extraction(confidence=0.5))
    envelope = await router_agent.process(EMAIL)

    assert envelope.anomalies == ["Low confidence in extraction accuracy"]
    assert history.get(envelope.memory_id).anomalies == ["Low confidence in extraction accuracy"]


async def test_json_routed_to_json_agent(router_agent: RouterAgent, oracle: ScriptedOracle) -> None:
    oracle.script(OracleTask.CLASSIFY, classification("json", "invoice"))
    envelope = await router_agent.process('{"invoice_id": "INV-2026-0193", "total": 1840.5}')

    assert envelope.processing_agent == "json_agent"
    assert envelope.extracted_data["source"] == "json_agent"
    assert oracle.calls(OracleTask.SUMMARIZE) == []


@pytest.mark.parametrize("fmt", ["text", "pdf"])
async def test_other_formats_use_basic_extractor(
    router_agent: RouterAgent, oracle: ScriptedOracle, fmt: str,
) -> None:
    oracle.script(OracleTask.CLASSIFY, classification(fmt, "regulation"))
    envelope = await router_agent.process("Please confirm REACH status for item 4411.")

    assert envelope.processing_agent == "basic_extractor"
    assert envelope.extracted_data["summary"].startswith("Customer asks")
    [request] = oracle.calls(OracleTask.SUMMARIZE)
    assert request.context["intent"] == "regulation"


async def test_classification_failure_aborts_without_history(
    router_agent: RouterAgent, oracle: ScriptedOracle, history: HistoryStore,
) -> None:
    oracle.script(OracleTask.CLASSIFY, OracleError("service unavailable"))

    with pytest.raises(ClassificationError):
        await router_agent.process(EMAIL)

    assert history.get_all() == []
    assert oracle.calls(OracleTask.EXTRACT_EMAIL) == []
    assert len(oracle.calls(OracleTask.CLASSIFY)) == 1


async def test_malformed_json_fails_before_extraction_call(
    router_agent: RouterAgent, oracle: ScriptedOracle, history: HistoryStore,
) -> None:
    oracle.script(OracleTask.CLASSIFY, classification("json", "webhook"))

    with pytest.raises(MalformedJsonError):
        await router_agent.process('{"event": "order.created", "id": ')

    assert oracle.calls(OracleTask.EXTRACT_JSON) == []
    assert oracle.calls(OracleTask.SUMMARIZE) == []
    assert history.get_all() == []


async def test_failed_extractor_falls_back(
    router_agent: RouterAgent, oracle: ScriptedOracle, history: HistoryStore,
) -> None:
    oracle.script(OracleTask.EXTRACT_EMAIL, OracleError("quota exceeded"))

    envelope = await router_agent.process(EMAIL)

    assert envelope.processing_agent == "fallback_extractor"
    assert envelope.anomalies is not None
    assert any("quota exceeded" in a for a in envelope.anomalies)
    assert envelope.anomalies[0].startswith("Processing error: ")
    assert envelope.extracted_data["summary"].startswith("Customer asks")

    entry = history.get(envelope.memory_id)
    assert entry.processing_agent == "fallback_extractor"
    assert entry.anomalies == envelope.anomalies


async def test_failed_json_extractor_falls_back(router_agent: RouterAgent, oracle: ScriptedOracle) -> None:
    oracle.script(OracleTask.CLASSIFY, classification("json", "invoice"))
    oracle.script(OracleTask.EXTRACT_JSON, OracleError("bad gateway"))

    envelope = await router_agent.process('{"id": 1}')
    assert envelope.processing_agent == "fallback_extractor"
    assert any("bad gateway" in a for a in envelope.anomalies)


async def test_fallback_degrades_when_oracle_is_down_for_extraction(
    router_agent: RouterAgent, oracle: ScriptedOracle,
) -> None:
    oracle.script(OracleTask.EXTRACT_EMAIL, OracleError("down"))
    oracle.script(OracleTask.SUMMARIZE, OracleError("down"))

    envelope = await router_agent.process(EMAIL)
    assert envelope.processing_agent == "fallback_extractor"
    assert envelope.extracted_data["summary"] == "Failed to extract detailed information"


async def test_fallback_crash_raises_extraction_error(
    router_agent: RouterAgent, oracle: ScriptedOracle, history: HistoryStore, monkeypatch: pytest.MonkeyPatch,
) -> None:
    oracle.script(OracleTask.EXTRACT_EMAIL, OracleError("down"))

    async def _boom(self: GenericExtractor, text: str, intent: str) -> None:
        raise RuntimeError("generic extractor crashed")

    monkeypatch.setattr(GenericExtractor, "extract", _boom)

    with pytest.raises(ExtractionError, match="generic extractor crashed"):
        await router_agent.process(EMAIL)
    assert history.get_all() == []


async def test_source_excerpt_truncated_to_500_chars(router_agent: RouterAgent, history: HistoryStore) -> None:
    text = "".join(chr(ord("a") + i % 26) for i in range(1000))
    envelope = await router_agent.process(text)

    excerpt = history.get(envelope.memory_id).source_excerpt
    assert len(excerpt) == 500
    assert excerpt == text[:500]


async def test_short_input_stored_whole(router_agent: RouterAgent, history: HistoryStore) -> None:
    envelope = await router_agent.process(EMAIL)
    assert history.get(envelope.memory_id).source_excerpt == EMAIL


async def test_conversation_entries_are_linked(router_agent: RouterAgent, history: HistoryStore) -> None:
    first = await router_agent.process(EMAIL)
    second = await router_agent.process(EMAIL + "\n\nFollow-up: any update?")

    thread = history.get_by_conversation_id("conv-acme-0042")
    assert [e.id for e in thread] == [first.memory_id, second.memory_id]
