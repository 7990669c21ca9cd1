"""Stage outcomes and the run record kept by the pipeline.

Every stage reports a :class:`StageResult` instead of raising, so the
pipeline decides what happens next from the result alone.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from .config import AppConfig


class Stage(str, Enum):
    """States of the scaffolding pipeline, in execution order."""

    RESOLVE = "resolve"
    FETCH = "fetch"
    VALIDATE_SECRET = "validate_secret"
    PERSIST_SECRET = "persist_secret"
    INSTALL = "install"
    INIT_VCS = "init_vcs"
    REPORT = "report"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


class StageResult(BaseModel):
    """Outcome of a single stage."""

    stage: Stage
    success: bool = Field(default=True)
    error: str | None = Field(default=None, description="User-facing failure message")
    detail: str = Field(default="", description="Extra diagnostics shown in verbose mode")

    @classmethod
    def ok(cls, stage: Stage, detail: str = "") -> "StageResult":
        return cls(stage=stage, success=True, detail=detail)

    @classmethod
    def failed(cls, stage: Stage, error: str, detail: str = "") -> "StageResult":
        return cls(stage=stage, success=False, error=error, detail=detail)


class RunState(BaseModel):
    """Everything the pipeline recorded about one run."""

    config: AppConfig | None = None
    package_manager: str | None = None
    results: list[StageResult] = Field(default_factory=list)
    state: Stage = Field(default=Stage.RESOLVE)
    exit_code: int = Field(default=0)

    @computed_field  # type: ignore[misc]
    @property
    def attempted(self) -> list[Stage]:
        """Stages that ran, in order."""
        return [result.stage for result in self.results]

    def result_for(self, stage: Stage) -> StageResult | None:
        """Return the recorded result for *stage*, if it ran."""
        for result in self.results:
            if result.stage == stage:
                return result
        return None
