"""Classifier agent — format + business intent detection.

Classification is mandatory: there is no fallback label. Any oracle failure
surfaces as ClassificationError and aborts the request.
"""

from __future__ import annotations

import structlog

from docrouter.modules.routing.agent_schemas import ClassificationResult
from docrouter.modules.routing.agents.base import BaseAgent
from docrouter.modules.routing.errors import ClassificationError, OracleError
from docrouter.modules.routing.oracle import OracleTask, response_schema_for

logger = structlog.get_logger()


class ClassifierAgent(BaseAgent):
    """Asks the oracle for {format, intent, confidence, reasoning}."""

    agent_name = "Classifier"

    async def classify(
        self,
        text: str,
        input_type_hint: str | None = None,
    ) -> ClassificationResult:
        """Classify raw input.

        Args:
            text: Raw document content.
            input_type_hint: Caller's guess at the format (e.g. "email"), passed to the oracle.

        Raises:
            ClassificationError: oracle unavailable, timed out, or returned an invalid result.
        """
        try:
            data = await self.oracle.classify(
                text,
                input_type_hint,
                response_schema_for(ClassificationResult),
            )
            classification = self.validate_response(
                data, ClassificationResult, OracleTask.CLASSIFY
            )
        except OracleError as e:
            logger.error("Classification failed", hint=input_type_hint, error=str(e))
            raise ClassificationError(f"Classification failed: {e}") from e

        logger.info(
            "Document classified",
            format=classification.format,
            intent=classification.intent,
            confidence=classification.confidence,
            reasoning=classification.reasoning[:80],
        )
        return classification
