"""Unit tests for the JSON agent and FlowBit envelope validation."""

from __future__ import annotations

import json

import pytest

from conftest import ScriptedOracle, json_analysis
from docrouter.modules.routing.agents.json_agent import (
    SCHEMA_NONCONFORMANCE,
    JsonAgent,
    validate_envelope,
)
from docrouter.modules.routing.errors import (
    JsonExtractionError,
    MalformedJsonError,
    OracleError,
    SchemaValidationError,
)
from docrouter.modules.routing.oracle import OracleTask

WEBHOOK = json.dumps({
    "invoice_id": "INV-2026-0193",
    "supplier": "Northwind Supplies",
    "total": "1840.50",
    "currency": "EUR",
})


async def test_extract_produces_flowbit_envelope(oracle: ScriptedOracle) -> None:
    outcome = await JsonAgent(oracle).extract(WEBHOOK)

    record = outcome.normalized_record
    assert set(record) == {"id", "type", "source", "timestamp", "data", "metadata"}
    assert record["id"] == "INV-2026-0193"
    assert record["type"] == "invoice"
    assert record["source"] == "json_agent"
    assert record["data"]["vendor"] == "Northwind Supplies"
    assert record["data"]["lineItems"][0]["unitPrice"] == 613.5
    assert record["metadata"]["processingAgent"] == "json_agent"
    assert record["metadata"]["businessContext"] == "Vendor invoice awaiting payment"
    assert "anomalies" not in record["metadata"]
    assert outcome.anomalies == []


async def test_oracle_receives_pretty_printed_payload(oracle: ScriptedOracle) -> None:
    await JsonAgent(oracle).extract(WEBHOOK)
    [request] = oracle.calls(OracleTask.EXTRACT_JSON)
    assert json.loads(request.content) == json.loads(WEBHOOK)
    assert "\n" in request.content


async def test_detected_anomalies_are_carried(oracle: ScriptedOracle) -> None:
    oracle.script(OracleTask.EXTRACT_JSON, json_analysis(detectedAnomalies=["Total given as string"]))
    outcome = await JsonAgent(oracle).extract(WEBHOOK)
    assert outcome.anomalies == ["Total given as string"]
    assert outcome.normalized_record["metadata"]["anomalies"] == ["Total given as string"]


async def test_malformed_json_fails_before_oracle_call(oracle: ScriptedOracle) -> None:
    with pytest.raises(MalformedJsonError, match="Invalid JSON input"):
        await JsonAgent(oracle).extract('{"invoice_id": "INV-1",')
    assert oracle.calls(OracleTask.EXTRACT_JSON) == []


async def test_schema_nonconformance_is_an_anomaly_not_an_error(oracle: ScriptedOracle) -> None:
    # No id/type and a non-numeric amount: the envelope cannot validate
    oracle.script(
        OracleTask.EXTRACT_JSON,
        json_analysis(extractedData={"vendor": "Northwind", "amount": "about a thousand"}),
    )
    outcome = await JsonAgent(oracle).extract(WEBHOOK)

    assert outcome.anomalies == [SCHEMA_NONCONFORMANCE]
    record = outcome.normalized_record
    assert record["id"] is None
    assert record["data"]["amount"] == "about a thousand"
    assert record["metadata"]["anomalies"] == [SCHEMA_NONCONFORMANCE]


async def test_oracle_failure_raises_json_extraction_error(oracle: ScriptedOracle) -> None:
    oracle.script(OracleTask.EXTRACT_JSON, OracleError("quota exceeded"))
    with pytest.raises(JsonExtractionError, match="quota exceeded"):
        await JsonAgent(oracle).extract(WEBHOOK)


def test_validate_envelope_rejects_missing_fields() -> None:
    with pytest.raises(SchemaValidationError):
        validate_envelope({"id": "x", "source": "json_agent"})


@pytest.mark.parametrize(
    "extracted",
    [
        {"id": "INV-2026-0193", "type": "invoice", "amount": "1840.50"},
        {
            "id": "INV-2026-0193",
            "type": "invoice",
            "lineItems": [{"description": "Maintenance visit", "quantity": "3", "unitPrice": 613.5}],
        },
    ],
)
async def test_numeric_strings_are_not_coerced(oracle: ScriptedOracle, extracted: dict) -> None:
    oracle.script(OracleTask.EXTRACT_JSON, json_analysis(extractedData=extracted))
    outcome = await JsonAgent(oracle).extract(WEBHOOK)

    assert SCHEMA_NONCONFORMANCE in outcome.anomalies
    # Record is returned as the oracle produced it
    assert outcome.normalized_record["data"] == extracted
