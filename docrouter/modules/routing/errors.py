"""Error taxonomy for the routing pipeline.

Fatal to a request:
  InvalidInputError    — caller sent an empty or non-string input
  ClassificationError  — the classifier oracle call failed (never retried)
  MalformedJsonError   — JSON-classified input does not parse
  ExtractionError      — primary extractor AND generic fallback both failed

Absorbed inside the pipeline:
  OracleError (+ subclasses) — remote model call failed / timed out / bad shape
  EmailExtractionError, JsonExtractionError — trigger the generic fallback
  SchemaValidationError — recorded as an anomaly on the FlowBit envelope
"""

from __future__ import annotations


class DocRouterError(Exception):
    """Base class for all routing pipeline errors."""


class InvalidInputError(DocRouterError):
    """Input failed basic shape checks (empty, wrong type)."""


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------


class OracleError(DocRouterError):
    """The external classification/extraction capability failed."""


class OracleConfigurationError(OracleError):
    """The oracle provider is not usable (missing credential, unknown provider)."""


class OracleTimeoutError(OracleError):
    """The oracle did not answer within the configured timeout."""


class OracleResponseError(OracleError):
    """The oracle answered, but the payload is not valid JSON or does not fit the schema."""


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


class ClassificationError(DocRouterError):
    """Classification failed. Wraps the underlying OracleError."""


class ExtractorError(DocRouterError):
    """A format-specific extractor failed."""


class EmailExtractionError(ExtractorError):
    pass


class JsonExtractionError(ExtractorError):
    pass


class MalformedJsonError(ExtractorError):
    """JSON-format input could not be parsed."""


class ExtractionError(DocRouterError):
    """Both the dispatched extractor and the generic fallback failed."""


class SchemaValidationError(DocRouterError):
    """A produced record does not conform to its fixed schema. Non-fatal."""
