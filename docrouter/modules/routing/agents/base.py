"""BaseAgent — shared oracle access and response validation for all agents."""

from __future__ import annotations

from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from docrouter.modules.routing.errors import OracleResponseError
from docrouter.modules.routing.oracle import Oracle, OracleTask, response_schema_for

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


class BaseAgent:
    """Base class for all routing agents.

    Provides:
      - the injected Oracle
      - ask(): structured extraction request + schema validation of the answer
      - validate_response(): the same check for answers obtained another way
    """

    agent_name: str = "base"

    def __init__(self, oracle: Oracle) -> None:
        self.oracle = oracle

    async def ask(
        self,
        task: OracleTask,
        content: str,
        response_model: type[ModelT],
        **context: str,
    ) -> ModelT:
        """Run an extraction task on the oracle and validate the answer.

        Raises:
            OracleError: the call failed, timed out, or the answer does not fit the schema.
        """
        data = await self.oracle.extract_structured(
            task,
            content,
            response_schema_for(response_model),
            **context,
        )
        return self.validate_response(data, response_model, task)

    def validate_response(
        self,
        data: dict[str, Any],
        response_model: type[ModelT],
        task: OracleTask,
    ) -> ModelT:
        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"{self.agent_name} received malformed oracle response",
                task=task.value,
                errors=e.error_count(),
            )
            raise OracleResponseError(
                f"Oracle response does not match {response_model.__name__}: {e}"
            ) from e
