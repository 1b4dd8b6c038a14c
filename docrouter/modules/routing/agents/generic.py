"""Generic extractor — summary for pdf/text input and the fallback for failed extractions.

Never fails outward on oracle errors: a degraded-but-valid summary is
returned instead, which is what lets the RouterAgent always finish.
"""

from __future__ import annotations

import structlog

from docrouter.modules.routing.agent_schemas import ExtractionOutcome, GenericSummary
from docrouter.modules.routing.agents.base import BaseAgent
from docrouter.modules.routing.errors import OracleError
from docrouter.modules.routing.oracle import OracleTask

logger = structlog.get_logger()


def degraded_summary() -> GenericSummary:
    return GenericSummary(
        summary="Failed to extract detailed information",
        key_points=["Processing error occurred"],
        entities=[],
        urgency="medium",
        action_items=["Review input and try again"],
    )


class GenericExtractor(BaseAgent):
    agent_name = "GenericExtractor"

    async def extract(self, text: str, intent: str) -> ExtractionOutcome:
        try:
            summary = await self.ask(OracleTask.SUMMARIZE, text, GenericSummary, intent=intent)
        except OracleError as e:
            logger.error("Basic extraction error", intent=intent, error=str(e))
            summary = degraded_summary()
        else:
            logger.info(
                "Basic extraction complete",
                intent=intent,
                key_points=len(summary.key_points),
                entities=len(summary.entities),
            )

        return ExtractionOutcome(normalized_record=summary.model_dump(by_alias=True))
