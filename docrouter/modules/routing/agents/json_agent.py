"""JSON agent — webhook / API payloads into the FlowBit envelope.

Pipeline:
  raw text -> json.loads (fatal on failure, before any oracle call)
           -> oracle analysis (standardized record + anomalies)
           -> FlowBit envelope -> schema validation (non-fatal)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from docrouter.modules.routing.agent_schemas import ExtractionOutcome, FlowBitRecord, JsonAnalysis
from docrouter.modules.routing.agents.base import BaseAgent
from docrouter.modules.routing.errors import (
    JsonExtractionError,
    MalformedJsonError,
    OracleError,
    SchemaValidationError,
)
from docrouter.modules.routing.oracle import OracleTask

logger = structlog.get_logger()

SOURCE_TAG = "json_agent"
SCHEMA_NONCONFORMANCE = "Data does not fully conform to FlowBit schema"


def parse_payload(json_text: str) -> Any:
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedJsonError(f"Invalid JSON input: {e.msg} (line {e.lineno}, column {e.colno})") from e


def validate_envelope(envelope: dict[str, Any]) -> dict[str, Any]:
    """Validate a FlowBit envelope (strict types, no coercion) and return its normalized form.

    Raises:
        SchemaValidationError: the envelope does not conform.
    """
    try:
        record = FlowBitRecord.model_validate(envelope, strict=True)
    except ValidationError as e:
        raise SchemaValidationError(str(e)) from e
    return record.model_dump(by_alias=True, exclude_none=True)


class JsonAgent(BaseAgent):
    """JSON text -> FlowBit standardized record."""

    agent_name = "JsonAgent"

    async def extract(self, json_text: str) -> ExtractionOutcome:
        """Extract a FlowBit record from a JSON document.

        Raises:
            MalformedJsonError: ``json_text`` is not valid JSON. Raised before the oracle is called.
            JsonExtractionError: the oracle call failed.
        """
        payload = parse_payload(json_text)

        try:
            analysis = await self.ask(
                OracleTask.EXTRACT_JSON,
                json.dumps(payload, indent=2, ensure_ascii=False),
                JsonAnalysis,
            )
        except OracleError as e:
            logger.error("JSON extraction failed", error=str(e))
            raise JsonExtractionError(f"JSON processing failed: {e}") from e

        anomalies = list(analysis.detected_anomalies)
        data = analysis.extracted_data
        envelope: dict[str, Any] = {
            "id": data.get("id"),
            "type": data.get("type"),
            "source": SOURCE_TAG,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
            "metadata": {
                "confidence": analysis.confidence,
                "processingAgent": SOURCE_TAG,
                "anomalies": anomalies or None,
                "businessContext": analysis.business_context,
            },
        }

        try:
            record = validate_envelope(envelope)
        except SchemaValidationError as e:
            logger.warning("FlowBit validation failed", error=str(e))
            anomalies.append(SCHEMA_NONCONFORMANCE)
            envelope["metadata"]["anomalies"] = list(anomalies)
            record = envelope

        logger.info(
            "JSON extraction complete",
            record_id=record.get("id"),
            record_type=record.get("type"),
            confidence=analysis.confidence,
            anomalies=len(anomalies),
        )
        return ExtractionOutcome(normalized_record=record, anomalies=anomalies)
