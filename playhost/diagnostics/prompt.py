"""User-facing failure prompt model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from playhost.api.failures import FailureNotice
from playhost.diagnostics.json_codec import dumps_text

PROMPT_TITLE = "Something went wrong"
DETAILS_LABEL = "Technical details"


class PromptActionId(StrEnum):
    RETRY = "retry"
    AUTO_REPAIR = "auto_repair"
    DISMISS = "dismiss"


@dataclass(frozen=True, slots=True)
class PromptAction:
    id: PromptActionId
    label: str


@dataclass(slots=True)
class FailurePrompt:
    """Modal prompt shown for one unresolved failure notice."""

    failure_id: str
    title: str
    message: str
    actions: tuple[PromptAction, ...]
    details: str
    details_visible: bool = False
    can_retry: bool = False
    remediation_hint: str | None = field(default=None)

    @classmethod
    def from_notice(cls, notice: FailureNotice) -> FailurePrompt:
        actions = [PromptAction(PromptActionId.RETRY, "Try again")]
        if notice.can_retry:
            actions.append(PromptAction(PromptActionId.AUTO_REPAIR, "Try auto repair"))
        actions.append(PromptAction(PromptActionId.DISMISS, "Close"))
        return cls(
            failure_id=notice.failure_id,
            title=PROMPT_TITLE,
            message=notice.message,
            actions=tuple(actions),
            details=dumps_text(notice.record.to_payload(), pretty=True),
            can_retry=notice.can_retry,
            remediation_hint=notice.remediation_hint,
        )

    @property
    def action_ids(self) -> tuple[PromptActionId, ...]:
        return tuple(action.id for action in self.actions)

    def allows(self, action_id: str) -> bool:
        return any(action.id == action_id for action in self.actions)

    def toggle_details(self) -> bool:
        self.details_visible = not self.details_visible
        return self.details_visible

    def render_lines(self) -> list[str]:
        """Plain-text rendering for headless hosts and the CLI."""
        lines = [self.title, "", *self.message.splitlines(), ""]
        lines.extend(f"[{action.id.value}] {action.label}" for action in self.actions)
        marker = "v" if self.details_visible else ">"
        lines.append(f"{marker} {DETAILS_LABEL}")
        if self.details_visible:
            lines.extend(self.details.splitlines())
        return lines
