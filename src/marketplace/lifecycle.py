"""Campaign lifecycle state machine.

Every campaign status change goes through ``CampaignLifecycle.target``;
transitions not listed in ``CAMPAIGN_TRANSITIONS`` are rejected with
``InvalidStateError`` before anything is written.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from src.api_errors import InvalidStateError, ValidationError
from src.marketplace.config import CampaignStatus

logger = logging.getLogger(__name__)


class CampaignAction(Enum):
    """Restaurant (or system) initiated campaign actions."""
    PUBLISH = "publish"
    OPEN_APPLICATIONS = "open_applications"
    START = "start"
    COMPLETE = "complete"
    MARK_PAID = "mark_paid"
    CLOSE = "close"


def _publishable(context: Dict[str, Any]) -> Optional[str]:
    campaign = context.get("campaign")
    missing = []
    if campaign is None or not (campaign.title or "").strip():
        missing.append("title")
    if campaign is None or campaign.budget_per_influencer is None:
        missing.append("budget_per_influencer")
    if campaign is None or not (campaign.requirements or "").strip():
        missing.append("requirements")
    if missing:
        return f"Campaign cannot be published without: {', '.join(missing)}"
    return None


def _has_accepted(context: Dict[str, Any]) -> Optional[str]:
    if context.get("accepted_count", 0) < 1:
        return "Campaign needs at least one accepted application to start"
    return None


@dataclass
class Transition:
    """A campaign action allowed from a set of states."""

    action: CampaignAction
    from_states: frozenset
    to_state: CampaignStatus
    guard: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None
    label: str = ""


@dataclass
class TransitionRecord:
    """Audit record for an applied transition."""

    campaign_id: str
    action: CampaignAction
    from_state: CampaignStatus
    to_state: CampaignStatus
    actor: str = "system"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "campaign_id": self.campaign_id,
            "action": self.action.value,
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "actor": self.actor,
            "timestamp": self.timestamp.isoformat(),
        }


CAMPAIGN_TRANSITIONS: Dict[CampaignAction, Transition] = {
    CampaignAction.PUBLISH: Transition(
        action=CampaignAction.PUBLISH,
        from_states=frozenset({CampaignStatus.DRAFT}),
        to_state=CampaignStatus.PUBLISHED,
        guard=_publishable,
        label="Publish",
    ),
    CampaignAction.OPEN_APPLICATIONS: Transition(
        action=CampaignAction.OPEN_APPLICATIONS,
        from_states=frozenset({CampaignStatus.PUBLISHED}),
        to_state=CampaignStatus.APPLICATIONS_OPEN,
        label="Open applications",
    ),
    CampaignAction.START: Transition(
        action=CampaignAction.START,
        from_states=frozenset({CampaignStatus.PUBLISHED, CampaignStatus.APPLICATIONS_OPEN}),
        to_state=CampaignStatus.IN_PROGRESS,
        guard=_has_accepted,
        label="Start",
    ),
    CampaignAction.COMPLETE: Transition(
        action=CampaignAction.COMPLETE,
        from_states=frozenset({CampaignStatus.IN_PROGRESS}),
        to_state=CampaignStatus.COMPLETED,
        label="Complete",
    ),
    CampaignAction.MARK_PAID: Transition(
        action=CampaignAction.MARK_PAID,
        from_states=frozenset({CampaignStatus.COMPLETED}),
        to_state=CampaignStatus.PAID,
        label="Mark paid",
    ),
    CampaignAction.CLOSE: Transition(
        action=CampaignAction.CLOSE,
        from_states=frozenset({
            CampaignStatus.PUBLISHED,
            CampaignStatus.APPLICATIONS_OPEN,
            CampaignStatus.IN_PROGRESS,
        }),
        to_state=CampaignStatus.CLOSED,
        label="Close",
    ),
}

# Deletion is not a transition; the record is removed
DELETABLE_STATUSES = frozenset({CampaignStatus.DRAFT, CampaignStatus.PUBLISHED})


class CampaignLifecycle:
    """Validates campaign actions against the transition table."""

    def __init__(
        self,
        transitions: Optional[Dict[CampaignAction, Transition]] = None,
        history_limit: int = 500,
    ):
        self.transitions = transitions or CAMPAIGN_TRANSITIONS
        # Most recent transitions only; older records are dropped
        self.history: Deque[TransitionRecord] = deque(maxlen=history_limit)

    def target(
        self,
        campaign,
        action: CampaignAction,
        context: Optional[Dict[str, Any]] = None,
    ) -> CampaignStatus:
        """Return the status ``action`` leads to, or raise.

        Raises InvalidStateError when the campaign's status does not allow
        the action and ValidationError when a guard fails.
        """
        transition = self.transitions[action]
        current = campaign.status
        if current not in transition.from_states:
            raise InvalidStateError(
                f"Cannot {action.value.replace('_', ' ')} a campaign that is {current.value}",
                current_state=current.value,
                attempted=action.value,
            )
        if transition.guard is not None:
            problem = transition.guard({"campaign": campaign, **(context or {})})
            if problem:
                if action == CampaignAction.START:
                    raise InvalidStateError(
                        problem, current_state=current.value, attempted=action.value
                    )
                raise ValidationError(problem)
        return transition.to_state

    def require_publishable(self, campaign) -> None:
        """Raise ValidationError if ``campaign`` lacks a field publishing needs."""
        problem = _publishable({"campaign": campaign})
        if problem:
            raise ValidationError(problem)

    def record(
        self,
        campaign_id: str,
        action: CampaignAction,
        from_state: CampaignStatus,
        to_state: CampaignStatus,
        actor: str = "system",
    ) -> TransitionRecord:
        entry = TransitionRecord(
            campaign_id=campaign_id,
            action=action,
            from_state=from_state,
            to_state=to_state,
            actor=actor,
        )
        self.history.append(entry)
        logger.info(
            "Campaign %s: %s -> %s",
            action.value,
            from_state.value,
            to_state.value,
            extra={
                "campaign_id": campaign_id,
                "from_status": from_state.value,
                "to_status": to_state.value,
            },
        )
        return entry

    def available_actions(self, status: CampaignStatus) -> List[CampaignAction]:
        """Actions whose source states include ``status``."""
        return [a for a, t in self.transitions.items() if status in t.from_states]

    def can_delete(self, status: CampaignStatus) -> bool:
        return status in DELETABLE_STATUSES

    def visualize(self) -> Dict[str, List[str]]:
        """Adjacency list of the campaign state graph."""
        adj: Dict[str, List[str]] = {s.value: [] for s in CampaignStatus}
        for t in self.transitions.values():
            for source in t.from_states:
                if t.to_state.value not in adj[source.value]:
                    adj[source.value].append(t.to_state.value)
        return adj
