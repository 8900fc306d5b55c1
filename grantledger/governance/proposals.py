"""
Grant Proposals

Defines proposal types, lifecycle states, the Proposal record and its
single-slot edit audit entry, plus the field validators shared by proposal
creation and proposal updates.

Lifecycle:
    pending ──start_voting──▶ active ──finalize──▶ approved
                                       └─────────▶ rejected
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

from ..constants import (
    PROPOSAL_DESCRIPTION_MAX_LENGTH,
    PROPOSAL_MAX_MILESTONES,
    PROPOSAL_QUORUM_MAX,
    PROPOSAL_THRESHOLD_MAX,
    PROPOSAL_TITLE_MAX_LENGTH,
)
from ..exceptions import ErrorCode, LifecycleError, ValidationError
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalType(str, Enum):
    """Funding category of a proposal."""
    GRANT = "grant"
    EDUCATION = "education"
    ARTS = "arts"

    @classmethod
    def parse(cls, value: Union["ProposalType", str]) -> Optional["ProposalType"]:
        """Return the member for *value*, or None when it is not a known type."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class ProposalStatus(str, Enum):
    """Lifecycle stage."""
    PENDING = "pending"     # Editable by the proposer, voting not opened
    ACTIVE = "active"       # Voting open until end_time
    APPROVED = "approved"   # Quorum and threshold met
    REJECTED = "rejected"   # Quorum or threshold missed


_VALID_TRANSITIONS: Dict[ProposalStatus, Set[ProposalStatus]] = {
    ProposalStatus.PENDING:  {ProposalStatus.ACTIVE},
    ProposalStatus.ACTIVE:   {ProposalStatus.APPROVED, ProposalStatus.REJECTED},
    # Terminal states
    ProposalStatus.APPROVED: set(),
    ProposalStatus.REJECTED: set(),
}


# ══════════════════════════════════════════════════════════════════════
#  FIELD VALIDATORS
# ══════════════════════════════════════════════════════════════════════

def validate_title(title: str) -> None:
    if not isinstance(title, str) or not title or len(title) > PROPOSAL_TITLE_MAX_LENGTH:
        raise ValidationError(
            ErrorCode.INVALID_TITLE,
            f"title must be 1-{PROPOSAL_TITLE_MAX_LENGTH} characters",
        )


def validate_description(description: str) -> None:
    if (
        not isinstance(description, str)
        or not description
        or len(description) > PROPOSAL_DESCRIPTION_MAX_LENGTH
    ):
        raise ValidationError(
            ErrorCode.INVALID_DESCRIPTION,
            f"description must be 1-{PROPOSAL_DESCRIPTION_MAX_LENGTH} characters",
        )


def validate_positive(value: int, code: ErrorCode, field_name: str) -> None:
    """Amount, duration and funding goal must all be strictly positive."""
    if value <= 0:
        raise ValidationError(code, f"{field_name} must be positive, got {value}")


def validate_recipient(recipient: str, proposer: str) -> None:
    if not recipient or recipient == proposer:
        raise ValidationError(
            ErrorCode.INVALID_RECIPIENT, "recipient must differ from the proposer"
        )


def validate_proposal_type(proposal_type: Union[ProposalType, str]) -> ProposalType:
    parsed = ProposalType.parse(proposal_type)
    if parsed is None:
        raise ValidationError(
            ErrorCode.INVALID_PROPOSAL_TYPE,
            f"unknown proposal type {proposal_type!r}",
        )
    return parsed


def validate_percentage(value: int, code: ErrorCode, field_name: str, upper: int) -> None:
    if value <= 0 or value > upper:
        raise ValidationError(code, f"{field_name} must be in 1..{upper}, got {value}")


def validate_schedule(start_time: int, end_time: int, height: int) -> None:
    """The voting window must open no earlier than *height* and be non-empty."""
    if start_time < height:
        raise ValidationError(
            ErrorCode.INVALID_START_TIME,
            f"start time {start_time} is before current height {height}",
        )
    if end_time <= start_time:
        raise ValidationError(
            ErrorCode.INVALID_END_TIME,
            f"end time {end_time} must be after start time {start_time}",
        )


def validate_milestone_count(milestone_count: int) -> None:
    if milestone_count < 0 or milestone_count > PROPOSAL_MAX_MILESTONES:
        raise ValidationError(
            ErrorCode.INVALID_MILESTONE,
            f"milestone count must be in 0..{PROPOSAL_MAX_MILESTONES}",
        )


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    Funding proposal tracked by the ledger.

    Fields:
        id:                Monotonic identifier, assigned from 0
        title:             Unique among live proposals
        description:       Rationale
        requested_amount:  Amount asked for
        recipient:         Principal that receives the funds and files the report
        duration:          Informational project duration
        start_time:        Earliest height at which voting may be opened
        end_time:          Height at which voting closes
        status:            Current lifecycle stage
        proposer:          Principal that created the proposal (immutable)
        proposal_type:     Funding category
        quorum:            Minimum total votes for a valid decision
        threshold:         Minimum absolute count of votes in favour
        votes_for:         Votes in favour so far
        votes_against:     Votes against so far
        funding_goal:      Overall funding target
        milestone_count:   Planned milestones
        report_submitted:  Completion report flag, set by the recipient
    """
    id: int
    title: str
    description: str
    requested_amount: int
    recipient: str
    duration: int
    start_time: int
    end_time: int
    proposer: str
    proposal_type: ProposalType
    quorum: int
    threshold: int
    funding_goal: int
    milestone_count: int
    status: ProposalStatus = ProposalStatus.PENDING
    votes_for: int = 0
    votes_against: int = 0
    report_submitted: bool = False

    # ── Properties ────────────────────────────────────────────────────

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self.status]

    @property
    def is_editable(self) -> bool:
        return self.status == ProposalStatus.PENDING

    @property
    def is_votable(self) -> bool:
        return self.status == ProposalStatus.ACTIVE

    # ── Mutation ──────────────────────────────────────────────────────

    def transition_to(self, new_status: ProposalStatus) -> None:
        """
        Advance proposal to *new_status*.

        Raises LifecycleError on any transition outside the lifecycle graph.
        """
        allowed = _VALID_TRANSITIONS[self.status]
        if new_status not in allowed:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_PENDING
                if self.status == ProposalStatus.PENDING
                else ErrorCode.PROPOSAL_NOT_ACTIVE,
                f"cannot transition from {self.status.value} to {new_status.value}",
            )
        old = self.status
        self.status = new_status
        logger.info(f"Proposal #{self.id}: {old.value} -> {new_status.value}")

    def apply_update(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
        requested_amount: Optional[int] = None,
        start_time: Optional[int] = None,
    ) -> None:
        """Overwrite the given fields in place; fields left as None are kept."""
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description
        if requested_amount is not None:
            self.requested_amount = requested_amount
        if start_time is not None:
            self.start_time = start_time

    def record_vote(self, in_favour: bool) -> None:
        if in_favour:
            self.votes_for += 1
        else:
            self.votes_against += 1

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "requestedAmount": self.requested_amount,
            "recipient": self.recipient,
            "duration": self.duration,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "status": self.status.value,
            "proposer": self.proposer,
            "proposalType": self.proposal_type.value,
            "quorum": self.quorum,
            "threshold": self.threshold,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
            "fundingGoal": self.funding_goal,
            "milestoneCount": self.milestone_count,
            "reportSubmitted": self.report_submitted,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proposal":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            requested_amount=data["requestedAmount"],
            recipient=data["recipient"],
            duration=data["duration"],
            start_time=data["startTime"],
            end_time=data["endTime"],
            proposer=data["proposer"],
            proposal_type=ProposalType(data["proposalType"]),
            quorum=data["quorum"],
            threshold=data["threshold"],
            funding_goal=data["fundingGoal"],
            milestone_count=data["milestoneCount"],
            status=ProposalStatus(data.get("status", ProposalStatus.PENDING.value)),
            votes_for=data.get("votesFor", 0),
            votes_against=data.get("votesAgainst", 0),
            report_submitted=data.get("reportSubmitted", False),
        )

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} '{self.title}' "
            f"type={self.proposal_type.value} status={self.status.value}>"
        )


@dataclass(frozen=True)
class ProposalUpdate:
    """Most recent edit of a proposal. One slot per proposal id, overwritten on each edit."""
    proposal_id: int
    update_title: str
    update_description: str
    update_amount: int
    update_timestamp: int
    updater: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "updateTitle": self.update_title,
            "updateDescription": self.update_description,
            "updateAmount": self.update_amount,
            "updateTimestamp": self.update_timestamp,
            "updater": self.updater,
        }
