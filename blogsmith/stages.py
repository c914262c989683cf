"""Shared plumbing for pipeline stages: the client call and its failure policy."""

from __future__ import annotations

import logging
from enum import Enum

from blogsmith.completion_client import CompletionClient, ConfigError, ProviderError

log = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    ABSORB = "absorb"        # log and hand back a fallback value
    PROPAGATE = "propagate"  # re-raise as GenerationError


class GenerationError(Exception):
    """A stage could not produce output and its policy is PROPAGATE."""

    def __init__(self, message: str, stage: str = ""):
        super().__init__(message)
        self.stage = stage


class PipelineStage:
    """Base for the LLM-backed stages.

    Subclasses set ``name``, ``system_instruction`` and a default
    ``on_failure``; the policy can be overridden per instance.
    """

    name = "stage"
    system_instruction = ""
    on_failure = FailurePolicy.ABSORB

    def __init__(self, client: CompletionClient, model: str, on_failure: FailurePolicy | None = None):
        self.client = client
        self.model = model
        if on_failure is not None:
            self.on_failure = FailurePolicy(on_failure)

    def call_model(self, user_message: str) -> str | None:
        """Run one completion under this stage's failure policy.

        Returns the raw text, or None when the call fails and the policy is
        ABSORB; an absorbing stage swallows any exception from the client.
        Under PROPAGATE, provider and config failures are raised as
        GenerationError and anything else is re-raised unchanged.
        """
        try:
            return self.client.complete(self.system_instruction, user_message, self.model)
        except (ProviderError, ConfigError) as e:
            if self.on_failure is FailurePolicy.PROPAGATE:
                log.error(f"{self.name} failed: {e}", extra={"stage": self.name, "model": self.model})
                raise GenerationError(str(e), stage=self.name) from e
            log.warning(
                f"{self.name} failed, using fallback: {e}",
                extra={"stage": self.name, "model": self.model},
            )
            return None
        except Exception as e:
            if self.on_failure is FailurePolicy.PROPAGATE:
                raise
            log.exception(
                f"{self.name} failed unexpectedly, using fallback: {e}",
                extra={"stage": self.name, "model": self.model},
            )
            return None
