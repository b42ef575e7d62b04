"""Error taxonomy for the orchestration engine."""

from __future__ import annotations


class CareerOrchestratorError(Exception):
    """Base class for all orchestrator errors."""


class SchemaViolation(CareerOrchestratorError):
    """Model output did not match its output contract.

    ``issues`` holds at most three ``(path, message)`` pairs; ``path`` and
    ``message`` describe the first one. ``token_estimate`` is the usage of
    the completion that produced the bad output, when there was one.
    """

    def __init__(self, agent: str, path: str, message: str, issues: list[tuple[str, str]] | None = None):
        self.agent = agent
        self.path = path
        self.message = message
        self.issues = issues or [(path, message)]
        self.token_estimate = 0
        super().__init__(f"{agent} output failed schema validation: [{path}] {message}")


class ProviderError(CareerOrchestratorError):
    """Transport, auth or timeout failure talking to the model provider."""


class BudgetExceeded(CareerOrchestratorError):
    """A reservation would exceed the run's token budget.

    Internal to the pipeline driver: it is converted into a ``partial`` run
    and never escapes ``PipelineOrchestrator.run``.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InputValidationError(CareerOrchestratorError):
    """Caller input is malformed. Raised before any model call."""

    def __init__(self, message: str, fields: dict[str, str] | None = None):
        self.fields = fields or {}
        super().__init__(message)


class QuotaExceeded(CareerOrchestratorError):
    """The caller has used up its allowance for this run type."""

    def __init__(self, user_id: str, run_type: str, used: int, limit: int):
        self.user_id = user_id
        self.run_type = run_type
        self.used = used
        self.limit = limit
        super().__init__(f"quota exceeded: {used}/{limit} {run_type} runs in the current window")
