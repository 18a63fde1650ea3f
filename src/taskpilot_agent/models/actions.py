# taskpilot_agent/models/actions.py
"""Change-sets, impact levels and the confirmation request/response shapes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskpilot_agent.models.enums import ActionChangeType, ActionImpact, ConfirmationOutcome


class ActionChange(BaseModel):
    """One concrete effect of a proposed action."""

    model_config = ConfigDict(frozen=True)

    type: ActionChangeType
    target: str = Field(..., description="Human label, e.g. 'Task: Write report'")
    field: str | None = Field(default=None)
    old_value: Any | None = Field(default=None)
    new_value: Any | None = Field(default=None)
    description: str = Field(default="")


class ConfirmationLevel(BaseModel):
    """What the confirmation UI must do for a given impact."""

    model_config = ConfigDict(frozen=True)

    impact: ActionImpact
    requires_explicit_confirmation: bool
    show_preview: bool
    allow_alternatives: bool


class AlternativeAction(BaseModel):
    """An executable substitute for the primary action (e.g. archive instead of delete)."""

    id: str
    label: str
    description: str = Field(default="")
    # Sync or async; a falsy return or an unsuccessful result counts as failure
    action: Callable[[], Any] = Field(exclude=True)


class AIActionPreview(BaseModel):
    """The object rendered to the human; rebuilt from the change-set on demand."""

    title: str
    description: str
    changes: list[ActionChange] = Field(default_factory=list)
    impact: ActionImpact
    reversible: bool = Field(default=True)


class ConfirmationOptions(BaseModel):
    """Input to ConfirmationGate.request_confirmation."""

    title: str
    description: str = Field(default="")
    changes: list[ActionChange] = Field(default_factory=list)
    reversible: bool = Field(default=True)
    on_confirm: Callable[[], Any] = Field(exclude=True)
    on_cancel: Callable[[], Any] | None = Field(default=None, exclude=True)
    alternatives: list[AlternativeAction] = Field(default_factory=list)
    impact: ActionImpact | None = Field(default=None, description="Override the analyzed impact")


class ConfirmationRequest(BaseModel):
    """What the host UI handler receives."""

    options: ConfirmationOptions
    preview: AIActionPreview
    level: ConfirmationLevel

    @property
    def alternative_ids(self) -> list[str]:
        return [alt.id for alt in self.options.alternatives]


class ConfirmationDecision(BaseModel):
    """The human's answer to a confirmation request."""

    model_config = ConfigDict(frozen=True)

    outcome: ConfirmationOutcome
    alternative_id: str | None = Field(default=None)

    @classmethod
    def confirm(cls) -> ConfirmationDecision:
        return cls(outcome=ConfirmationOutcome.CONFIRM)

    @classmethod
    def cancel(cls) -> ConfirmationDecision:
        return cls(outcome=ConfirmationOutcome.CANCEL)

    @classmethod
    def alternative(cls, alternative_id: str) -> ConfirmationDecision:
        return cls(outcome=ConfirmationOutcome.ALTERNATIVE, alternative_id=alternative_id)
