"""Email agent — turns an email into a normalized CRM lead.

The oracle supplies the structured reading of the email (sender, intent,
urgency, sentiment, business details). Everything derived from that reading
(next actions, priority, anomalies) is rule-based and deterministic.
"""

from __future__ import annotations

import random
import string
import time
from datetime import datetime, timezone

import structlog

from docrouter.modules.routing.agent_schemas import (
    EmailCommunication,
    EmailExtraction,
    ExtractionOutcome,
    LeadRecord,
    Priority,
)
from docrouter.modules.routing.agents.base import BaseAgent
from docrouter.modules.routing.errors import EmailExtractionError, OracleError
from docrouter.modules.routing.oracle import OracleTask

logger = structlog.get_logger()

# Below this extraction confidence the lead is flagged for review
LOW_CONFIDENCE_THRESHOLD = 0.7

_URGENCY_SCORE = {"high": 3, "medium": 2, "low": 1}
_INTENT_SCORE = {"complaint": 2, "rfq": 2, "quote_request": 2, "urgent_request": 3}
_SENTIMENT_SCORE = {"negative": 2}

# (minimum score, priority), checked top-down
_PRIORITY_THRESHOLDS: list[tuple[int, Priority]] = [
    (7, "critical"),
    (5, "high"),
    (3, "medium"),
]

_INTENT_ACTIONS: dict[str, list[str]] = {
    "rfq": [
        "Prepare detailed quotation",
        "Review technical specifications",
        "Check inventory and pricing",
        "Assign to sales team",
    ],
    "complaint": [
        "Escalate to customer service manager",
        "Investigate reported issue",
        "Prepare resolution plan",
    ],
    "support": [
        "Route to technical support",
        "Create support ticket",
    ],
}
_INTENT_ACTIONS["quote_request"] = _INTENT_ACTIONS["rfq"]


def generate_next_actions(intent: str, urgency: str, sentiment: str) -> list[str]:
    """Ordered follow-up actions for a lead."""
    actions = list(_INTENT_ACTIONS.get(intent, []))

    if urgency == "high":
        actions.insert(0, "PRIORITY: Respond within 2 hours")
        actions.append("Notify team lead immediately")

    if sentiment == "negative":
        actions.append("Handle with extra care")
        actions.append("Consider escalation to senior staff")

    actions.append("Send acknowledgment email")
    actions.append("Update CRM with interaction")
    return actions


def priority_score(urgency: str, intent: str, sentiment: str) -> int:
    return (
        _URGENCY_SCORE.get(urgency, 1)
        + _INTENT_SCORE.get(intent, 0)
        + _SENTIMENT_SCORE.get(sentiment, 0)
    )


def calculate_priority(urgency: str, intent: str, sentiment: str) -> Priority:
    """Additive score: urgency 3/2/1, intent +2/+3, negative sentiment +2."""
    score = priority_score(urgency, intent, sentiment)
    for minimum, priority in _PRIORITY_THRESHOLDS:
        if score >= minimum:
            return priority
    return "low"


def detect_anomalies(extraction: EmailExtraction) -> list[str]:
    """Data-quality flags for an extracted email."""
    anomalies: list[str] = []
    data = extraction.extracted_data

    if "@" not in extraction.sender.email or "." not in extraction.sender.email:
        anomalies.append("Invalid or suspicious email format")

    if extraction.confidence < LOW_CONFIDENCE_THRESHOLD:
        anomalies.append("Low confidence in extraction accuracy")

    if extraction.intent == "rfq" and not data.requirements:
        anomalies.append("RFQ detected but no clear requirements identified")

    if extraction.urgency == "high" and not data.deadline:
        anomalies.append("High urgency claimed but no specific deadline mentioned")

    if len(extraction.sender.name.strip()) < 2:
        anomalies.append("Sender name missing or incomplete")

    if extraction.intent == "quote_request" and not data.quantities:
        anomalies.append("Quote request without quantity specifications")

    return anomalies


def _new_lead_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"lead_{int(time.time() * 1000)}_{suffix}"


def build_lead_record(extraction: EmailExtraction) -> LeadRecord:
    return LeadRecord(
        lead_id=_new_lead_id(),
        timestamp=datetime.now(timezone.utc).isoformat(),
        contact=extraction.sender,
        communication=EmailCommunication(
            subject=extraction.subject,
            intent=extraction.intent,
            urgency=extraction.urgency,
            sentiment=extraction.sentiment,
            conversation_id=extraction.conversation_id,
        ),
        opportunity=extraction.extracted_data,
        next_actions=generate_next_actions(
            extraction.intent, extraction.urgency, extraction.sentiment
        ),
        confidence=extraction.confidence,
        priority=calculate_priority(
            extraction.urgency, extraction.intent, extraction.sentiment
        ),
    )


class EmailAgent(BaseAgent):
    """Email -> CRM lead record."""

    agent_name = "EmailAgent"

    async def extract(self, email_text: str) -> ExtractionOutcome:
        """Extract a lead from raw email text.

        Raises:
            EmailExtractionError: the oracle call failed. No local recovery.
        """
        try:
            extraction = await self.ask(OracleTask.EXTRACT_EMAIL, email_text, EmailExtraction)
        except OracleError as e:
            logger.error("Email extraction failed", error=str(e))
            raise EmailExtractionError(f"Email processing failed: {e}") from e

        lead = build_lead_record(extraction)
        anomalies = detect_anomalies(extraction)

        logger.info(
            "Email extraction complete",
            lead_id=lead.lead_id,
            intent=extraction.intent,
            urgency=extraction.urgency,
            priority=lead.priority,
            anomalies=len(anomalies),
        )

        return ExtractionOutcome(
            normalized_record=lead.model_dump(by_alias=True, exclude_none=True),
            anomalies=anomalies,
            conversation_id=extraction.conversation_id,
        )
