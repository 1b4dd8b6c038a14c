"""Router agent — pipeline controller.

Pure Python controller, no direct LLM calls. Routes one document through:

    validate -> Classify -> Extract (email | json | generic) -> Record -> Envelope
                               |
                               +-- on failure: generic fallback extractor

Classification and extraction are separate failure domains: a classification
failure aborts the request before anything is recorded, an extraction failure
degrades to the generic fallback.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import structlog

from docrouter.core.config import settings
from docrouter.modules.routing.agent_schemas import (
    ClassificationResult,
    ExtractionAttempt,
    ExtractionFailed,
    ExtractionOutcome,
    ExtractionSucceeded,
    ProcessingAgent,
)
from docrouter.modules.routing.agents.classifier import ClassifierAgent
from docrouter.modules.routing.agents.email import EmailAgent
from docrouter.modules.routing.agents.generic import GenericExtractor
from docrouter.modules.routing.agents.json_agent import JsonAgent
from docrouter.modules.routing.errors import ExtractionError, InvalidInputError, MalformedJsonError
from docrouter.modules.routing.memory import HistoryStore
from docrouter.modules.routing.oracle import Oracle
from docrouter.modules.routing.schemas import NewHistoryEntry, ResultEnvelope

logger = structlog.get_logger()


async def run_extractor(
    agent: ProcessingAgent,
    extract: Callable[[], Awaitable[ExtractionOutcome]],
) -> ExtractionAttempt:
    """Run one extractor and turn its outcome into an explicit attempt result.

    MalformedJsonError is not an extraction failure but bad client input, so
    it propagates.
    """
    try:
        outcome = await extract()
    except MalformedJsonError:
        raise
    except Exception as e:
        logger.error("Agent processing error", agent=agent, error=str(e))
        return ExtractionFailed(agent=agent, error=str(e) or type(e).__name__)
    return ExtractionSucceeded(agent=agent, outcome=outcome)


class RouterAgent:
    """Classification-routing pipeline over an injected oracle and history store."""

    agent_name = "Router"

    def __init__(
        self,
        oracle: Oracle,
        history: HistoryStore,
        excerpt_chars: int | None = None,
    ) -> None:
        self.history = history
        self.excerpt_chars = excerpt_chars if excerpt_chars is not None else settings.excerpt_chars

        self.classifier = ClassifierAgent(oracle)
        self.email_agent = EmailAgent(oracle)
        self.json_agent = JsonAgent(oracle)
        self.generic = GenericExtractor(oracle)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, text: str, classification: ClassificationResult) -> ExtractionAttempt:
        if classification.format == "email":
            return await run_extractor("email_agent", lambda: self.email_agent.extract(text))
        if classification.format == "json":
            return await run_extractor("json_agent", lambda: self.json_agent.extract(text))
        return await run_extractor(
            "basic_extractor",
            lambda: self.generic.extract(text, classification.intent),
        )

    async def _fallback(self, text: str, classification: ClassificationResult) -> ExtractionOutcome:
        attempt = await run_extractor(
            "fallback_extractor",
            lambda: self.generic.extract(text, classification.intent),
        )
        if isinstance(attempt, ExtractionFailed):
            raise ExtractionError(f"Fallback extraction failed: {attempt.error}")
        return attempt.outcome

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def process(self, text: object, input_type_hint: str | None = None) -> ResultEnvelope:
        """Classify, extract and record one document.

        Raises:
            InvalidInputError: ``text`` is not a non-empty string.
            ClassificationError: the classifier failed; nothing is recorded.
            MalformedJsonError: classified as JSON but does not parse.
            ExtractionError: both the dispatched extractor and the fallback failed.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Valid input string is required")

        logger.info("Router: processing input", hint=input_type_hint, input_length=len(text))

        classification = await self.classifier.classify(text, input_type_hint)

        anomalies: list[str] = []
        attempt = await self._dispatch(text, classification)

        if isinstance(attempt, ExtractionSucceeded):
            outcome = attempt.outcome
            processing_agent: ProcessingAgent = attempt.agent
        else:
            anomalies.append(f"Processing error: {attempt.error}")
            logger.info(
                "Router: falling back to generic extraction",
                failed_agent=attempt.agent,
                format=classification.format,
            )
            outcome = await self._fallback(text, classification)
            processing_agent = "fallback_extractor"

        anomalies.extend(outcome.anomalies)

        memory_id = self.history.append(NewHistoryEntry(
            source_excerpt=text[: self.excerpt_chars],
            format=classification.format,
            intent=classification.intent,
            normalized_record=outcome.normalized_record,
            conversation_id=outcome.conversation_id,
            anomalies=anomalies or None,
            processing_agent=processing_agent,
        ))

        logger.info(
            "Router: processing completed",
            memory_id=memory_id,
            format=classification.format,
            intent=classification.intent,
            agent=processing_agent,
            anomalies=len(anomalies),
        )

        return ResultEnvelope(
            classification=classification,
            extracted_data=outcome.normalized_record,
            memory_id=memory_id,
            timestamp=datetime.now(timezone.utc),
            anomalies=anomalies or None,
            processing_agent=processing_agent,
        )
