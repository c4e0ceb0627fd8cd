"""
Project generation pipeline.

One attempt is one linear run: validate input, check quota, build the
prompt, call the model, ingest the reply, hand the project to the
creation collaborator and record usage. Every failure is returned as a
classified UserFacingError, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ai_project_planner.config.loader import InputLimits, PlannerConfig
from ai_project_planner.sdk.openai_client import ModelClient
from ai_project_planner.storage.repository import GenerationEventRepository

from .errors import PlannerError, QuotaExceededError, QuotaRecordError, UserFacingError, classify
from .ingest import GeneratedProject, ingest_response
from .inputs import GenerationInput, require_valid_input
from .prompt import SYSTEM_MESSAGE, build_prompt
from .usage import UsageLedger, UsageStatus, UsageWindow

logger = logging.getLogger(__name__)

ProjectCreator = Callable[[GeneratedProject, str], str]


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one generation attempt.

    On success project is set and error is None. warning carries a
    non-fatal problem, such as usage that could not be recorded.
    """
    project: Optional[GeneratedProject] = None
    error: Optional[UserFacingError] = None
    warning: Optional[UserFacingError] = None
    usage: Optional[UsageStatus] = None
    project_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProjectGenerator:
    """Runs generation attempts end to end.

    Args:
        ledger: Usage ledger for quota check and record
        model_client: Object with generate(prompt, system_message) -> str
        limits: Input bounds (defaults when omitted)
        project_creator: Optional callable persisting the project and
            returning its identifier
    """

    def __init__(
        self,
        ledger: UsageLedger,
        model_client,
        limits: Optional[InputLimits] = None,
        project_creator: Optional[ProjectCreator] = None
    ):
        self.ledger = ledger
        self.model_client = model_client
        self.limits = limits or InputLimits()
        self.project_creator = project_creator

    def _produce(self, user_id: str, data: GenerationInput):
        require_valid_input(data, self.limits)

        usage = self.ledger.check(user_id)
        if usage.has_reached_limit and not usage.degraded:
            raise QuotaExceededError(usage.reset_time)

        raw_text = self.model_client.generate(build_prompt(data), system_message=SYSTEM_MESSAGE)
        return ingest_response(raw_text).unwrap(), usage

    def generate(self, user_id: str, data: GenerationInput) -> GenerationResult:
        """Run one attempt for a user.

        Validation and quota failures short-circuit before the model is
        called. A failed usage record after a successful generation still
        returns the project, with a warning attached.
        """
        try:
            project, usage = self._produce(user_id, data)
        except PlannerError as e:
            logger.info("Generation for user %s failed: %s", user_id, e.kind.value)
            return GenerationResult(error=classify(e))
        except Exception as e:
            logger.exception("Unexpected failure generating project for user %s", user_id)
            return GenerationResult(error=classify(e))

        project_id = None
        if self.project_creator is not None:
            try:
                project_id = self.project_creator(project, user_id)
            except Exception as e:
                logger.exception("Project creation failed for user %s", user_id)
                return GenerationResult(error=classify(e), usage=usage)

        try:
            self.ledger.record(user_id, project_id)
        except QuotaRecordError as e:
            return GenerationResult(project=project, project_id=project_id, warning=classify(e), usage=usage)

        return GenerationResult(project=project, project_id=project_id, usage=self.ledger.check(user_id))


def build_generator(
    config: Optional[PlannerConfig] = None,
    project_creator: Optional[ProjectCreator] = None
) -> ProjectGenerator:
    """Wire a generator from configuration with the SQLite store and OpenAI client."""
    config = config or PlannerConfig.default()
    ledger = UsageLedger(
        GenerationEventRepository(config.storage.db_path),
        window=UsageWindow.from_config(config.quota)
    )
    return ProjectGenerator(
        ledger,
        ModelClient(config.model),
        limits=config.input,
        project_creator=project_creator
    )
