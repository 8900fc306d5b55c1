"""
Proposal Ledger

The ledger owns every proposal, edit record, title-index entry and vote,
and enforces all lifecycle rules:

    create_proposal   → pending        (fee paid to the governance contract)
    update_proposal   pending only     (proposer)
    start_voting      pending → active (proposer, height >= start_time)
    vote_on_proposal  active only      (one vote per voter, height < end_time)
    finalize_proposal active → approved | rejected (height >= end_time)
    submit_report     approved only    (recipient)

Every operation first checks all of its preconditions against the current
state and only then mutates, so a rejected operation leaves no trace. The
fee transfer is the only external call; it runs after validation and before
any write.

Operations return a ``Result``; failures carry an ``ErrorCode``.
"""

import dataclasses
import functools
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..config import LedgerConfig
from ..constants import PROPOSAL_QUORUM_MAX, PROPOSAL_THRESHOLD_MAX
from ..exceptions import (
    AuthorizationError,
    CapacityError,
    ConflictError,
    ErrorCode,
    FundsTransferError,
    LedgerError,
    LifecycleError,
    ValidationError,
)
from ..logger import get_logger
from ..metrics import LedgerMetricsCollector
from ..transfers import FundsTransfer, InMemoryFundsTransfer
from .configuration import LedgerConfiguration
from .proposals import (
    Proposal,
    ProposalStatus,
    ProposalType,
    ProposalUpdate,
    validate_description,
    validate_milestone_count,
    validate_percentage,
    validate_positive,
    validate_proposal_type,
    validate_recipient,
    validate_schedule,
    validate_title,
)
from .result import Result
from .store import InMemoryLedgerStore, LedgerStore
from .voting import VoteRecord, VotingResult

logger = get_logger(__name__)

# Rejections worth an operator's attention; the rest are routine
_WARN_CODES = {
    ErrorCode.TRANSFER_FAILED,
    ErrorCode.INVALID_GOVERNANCE_ADDRESS,
    ErrorCode.GOVERNANCE_ALREADY_SET,
    ErrorCode.MAX_PROPOSALS_EXCEEDED,
}


@dataclass(frozen=True)
class CallContext:
    """Who is calling, and at which height."""
    caller: str
    height: int

    def __post_init__(self):
        if not self.caller:
            raise ValueError("caller is required")
        if self.height < 0:
            raise ValueError(f"height cannot be negative, got {self.height}")


def ledger_operation(func):
    """Run a ledger operation and turn its LedgerError into a failed Result."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        started = time.perf_counter()
        try:
            value = func(self, *args, **kwargs)
        except LedgerError as e:
            self.metrics.operations_rejected.inc(e.code.name)
            log = logger.warning if e.code in _WARN_CODES else logger.debug
            log(f"{func.__name__} rejected: {e.code}: {e.message}")
            return Result.failure(e.code)
        finally:
            self.metrics.operation_latency.observe(time.perf_counter() - started)
        return Result.success(value)

    return wrapper


class ProposalLedger:
    """
    Single-organization grant proposal ledger.

    Args:
        store:          Persistence backend (defaults to InMemoryLedgerStore)
        funds:          Fee transfer backend (defaults to an unlimited
                        InMemoryFundsTransfer)
        configuration:  Runtime configuration (defaults to LedgerConfiguration())
        metrics:        Metrics collector (a fresh one if omitted)
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        funds: Optional[FundsTransfer] = None,
        configuration: Optional[LedgerConfiguration] = None,
        metrics: Optional[LedgerMetricsCollector] = None,
    ):
        self._store = store if store is not None else InMemoryLedgerStore()
        self._funds = funds if funds is not None else InMemoryFundsTransfer(unlimited=True)
        self.configuration = configuration or LedgerConfiguration()
        self.metrics = metrics or LedgerMetricsCollector()

    @classmethod
    def from_config(cls, config: LedgerConfig, **kwargs) -> "ProposalLedger":
        """Validate *config*, apply its [logging] section and seed a new ledger from [ledger]."""
        config.validate()
        config.logging.apply()
        return cls(configuration=LedgerConfiguration.from_config(config), **kwargs)

    # ── Configuration ─────────────────────────────────────────────────

    @ledger_operation
    def set_governance_contract(self, address: str) -> bool:
        self.configuration.set_governance_contract(address)
        logger.info(f"Governance contract set to {address}")
        return True

    @ledger_operation
    def set_proposal_fee(self, new_fee: int) -> bool:
        old = self.configuration.proposal_fee
        self.configuration.set_proposal_fee(new_fee)
        logger.info(f"Proposal fee changed: {old} -> {new_fee}")
        return True

    # ── Lifecycle ─────────────────────────────────────────────────────

    @ledger_operation
    def create_proposal(
        self,
        ctx: CallContext,
        title: str,
        description: str,
        requested_amount: int,
        recipient: str,
        duration: int,
        proposal_type: Union[ProposalType, str],
        quorum: int,
        threshold: int,
        start_time: int,
        end_time: int,
        funding_goal: int,
        milestone_count: int,
    ) -> int:
        """
        Register a new pending proposal and charge the proposal fee.

        Checks run in a fixed order and the first failure decides the
        error code: capacity, title, description, amount, recipient,
        duration, type, quorum, threshold, start time, end time, funding
        goal, milestones, duplicate title, governance contract.

        Returns:
            The new proposal id.
        """
        config = self.configuration
        if not config.has_capacity:
            raise CapacityError(
                ErrorCode.MAX_PROPOSALS_EXCEEDED,
                f"ledger holds the maximum of {config.max_proposals} proposals",
            )
        validate_title(title)
        validate_description(description)
        validate_positive(requested_amount, ErrorCode.INVALID_AMOUNT, "requested amount")
        validate_recipient(recipient, ctx.caller)
        validate_positive(duration, ErrorCode.INVALID_DURATION, "duration")
        ptype = validate_proposal_type(proposal_type)
        validate_percentage(quorum, ErrorCode.INVALID_QUORUM, "quorum", PROPOSAL_QUORUM_MAX)
        validate_percentage(
            threshold, ErrorCode.INVALID_THRESHOLD, "threshold", PROPOSAL_THRESHOLD_MAX
        )
        validate_schedule(start_time, end_time, ctx.height)
        validate_positive(funding_goal, ErrorCode.INVALID_FUNDING_GOAL, "funding goal")
        validate_milestone_count(milestone_count)
        if self._store.lookup_title(title) is not None:
            raise ConflictError(
                ErrorCode.PROPOSAL_ALREADY_EXISTS, f"title '{title}' is already in use"
            )
        governance = config.require_governance()

        fee = config.proposal_fee
        self._collect_fee(fee, ctx.caller, governance)

        proposal = Proposal(
            id=config.allocate_id(),
            title=title,
            description=description,
            requested_amount=requested_amount,
            recipient=recipient,
            duration=duration,
            start_time=start_time,
            end_time=end_time,
            proposer=ctx.caller,
            proposal_type=ptype,
            quorum=quorum,
            threshold=threshold,
            funding_goal=funding_goal,
            milestone_count=milestone_count,
        )
        self._store.put_proposal(proposal)
        self._store.reindex_title(None, title, proposal.id)

        self.metrics.proposals_created.inc()
        self.metrics.proposal_count.set(config.next_proposal_id)
        self.metrics.fee_collected.inc(fee)
        logger.info(
            f"Proposal #{proposal.id} '{title}' created by {ctx.caller} "
            f"({ptype.value}, {requested_amount} for {recipient})"
        )
        return proposal.id

    @ledger_operation
    def update_proposal(
        self,
        ctx: CallContext,
        proposal_id: int,
        update_title: str,
        update_description: str,
        update_amount: int,
    ) -> bool:
        """
        Edit a pending proposal's title, description and amount.

        The voting clock is re-based: start_time becomes the current height.
        Keeping the current title is allowed; taking another proposal's
        title is not.
        """
        proposal = self._require_proposal(proposal_id)
        self._require_caller(ctx, proposal.proposer, "proposer")
        if not proposal.is_editable:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_PENDING,
                f"proposal #{proposal_id} is {proposal.status.value}",
            )
        validate_title(update_title)
        validate_description(update_description)
        if update_amount <= 0:
            raise ValidationError(
                ErrorCode.INVALID_UPDATE_PARAM,
                f"update amount must be positive, got {update_amount}",
            )
        owner = self._store.lookup_title(update_title)
        if owner is not None and owner != proposal_id:
            raise ConflictError(
                ErrorCode.PROPOSAL_ALREADY_EXISTS,
                f"title '{update_title}' belongs to proposal #{owner}",
            )

        old_title = proposal.title
        proposal.apply_update(
            title=update_title,
            description=update_description,
            requested_amount=update_amount,
            start_time=ctx.height,
        )
        self._store.put_proposal(proposal)
        self._store.reindex_title(old_title, update_title, proposal_id)
        self._store.put_update(
            ProposalUpdate(
                proposal_id=proposal_id,
                update_title=update_title,
                update_description=update_description,
                update_amount=update_amount,
                update_timestamp=ctx.height,
                updater=ctx.caller,
            )
        )
        logger.info(f"Proposal #{proposal_id} updated by {ctx.caller} at height {ctx.height}")
        return True

    @ledger_operation
    def start_voting(self, ctx: CallContext, proposal_id: int) -> bool:
        proposal = self._require_proposal(proposal_id)
        self._require_caller(ctx, proposal.proposer, "proposer")
        if proposal.status != ProposalStatus.PENDING:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_PENDING,
                f"proposal #{proposal_id} is {proposal.status.value}",
            )
        if ctx.height < proposal.start_time:
            raise LifecycleError(
                ErrorCode.VOTING_NOT_STARTED,
                f"voting for #{proposal_id} opens at height {proposal.start_time}",
            )
        proposal.transition_to(ProposalStatus.ACTIVE)
        self._store.put_proposal(proposal)
        return True

    @ledger_operation
    def vote_on_proposal(self, ctx: CallContext, proposal_id: int, vote: bool) -> bool:
        """Cast the caller's single, permanent vote."""
        if not isinstance(vote, bool):
            raise ValidationError(
                ErrorCode.INVALID_VOTE, f"vote must be a bool, got {type(vote).__name__}"
            )
        proposal = self._require_proposal(proposal_id)
        if not proposal.is_votable:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_ACTIVE,
                f"proposal #{proposal_id} is {proposal.status.value}",
            )
        if ctx.height >= proposal.end_time:
            raise LifecycleError(
                ErrorCode.VOTING_ALREADY_ENDED,
                f"voting for #{proposal_id} closed at height {proposal.end_time}",
            )
        if self._store.get_vote(proposal_id, ctx.caller) is not None:
            raise ConflictError(
                ErrorCode.ALREADY_VOTED,
                f"{ctx.caller} already voted on proposal #{proposal_id}",
            )

        self._store.put_vote(
            VoteRecord(proposal_id=proposal_id, voter=ctx.caller, vote=vote, height=ctx.height)
        )
        proposal.record_vote(vote)
        self._store.put_proposal(proposal)

        self.metrics.votes_cast.inc()
        logger.info(
            f"Vote: {ctx.caller} -> {'for' if vote else 'against'} on proposal #{proposal_id} "
            f"({proposal.votes_for}/{proposal.votes_against})"
        )
        return True

    @ledger_operation
    def finalize_proposal(self, ctx: CallContext, proposal_id: int) -> bool:
        """
        Close voting and decide the proposal.

        Approved iff votes_for + votes_against >= quorum and
        votes_for >= threshold.
        """
        proposal = self._require_proposal(proposal_id)
        if proposal.is_terminal:
            raise LifecycleError(
                ErrorCode.PROPOSAL_ALREADY_FINALIZED,
                f"proposal #{proposal_id} is already {proposal.status.value}",
            )
        if not proposal.is_votable:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_ACTIVE,
                f"proposal #{proposal_id} is {proposal.status.value}",
            )
        if ctx.height < proposal.end_time:
            raise LifecycleError(
                ErrorCode.VOTING_NOT_ENDED,
                f"voting for #{proposal_id} runs until height {proposal.end_time}",
            )

        result = VotingResult.for_proposal(proposal)
        proposal.transition_to(result.outcome)
        self._store.put_proposal(proposal)

        if result.is_approved:
            self.metrics.proposals_approved.inc()
        else:
            self.metrics.proposals_rejected.inc()
        logger.info(
            f"Proposal #{proposal_id} finalized: {result.outcome.value} "
            f"(votes={result.total_votes}/{result.quorum}, for={result.votes_for}/{result.threshold})"
        )
        return True

    @ledger_operation
    def submit_report(self, ctx: CallContext, proposal_id: int, report_submitted: bool) -> bool:
        """Set the completion-report flag of an approved proposal (recipient only)."""
        proposal = self._require_proposal(proposal_id)
        self._require_caller(ctx, proposal.recipient, "recipient")
        if proposal.status != ProposalStatus.APPROVED:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_APPROVED,
                f"proposal #{proposal_id} is {proposal.status.value}",
            )
        proposal.report_submitted = bool(report_submitted)
        self._store.put_proposal(proposal)
        logger.info(
            f"Proposal #{proposal_id} report "
            f"{'submitted' if proposal.report_submitted else 'withdrawn'} by {ctx.caller}"
        )
        return True

    # ── Queries ───────────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        """A copy of the proposal, or None."""
        proposal = self._store.get_proposal(proposal_id)
        return dataclasses.replace(proposal) if proposal is not None else None

    def get_proposal_update(self, proposal_id: int) -> Optional[ProposalUpdate]:
        return self._store.get_update(proposal_id)

    def get_proposal_count(self) -> int:
        return self.configuration.next_proposal_id

    def check_proposal_existence(self, title: str) -> bool:
        return self._store.lookup_title(title) is not None

    def get_proposal_id_by_title(self, title: str) -> Optional[int]:
        return self._store.lookup_title(title)

    def get_vote(self, proposal_id: int, voter: str) -> Optional[bool]:
        record = self._store.get_vote(proposal_id, voter)
        return record.vote if record is not None else None

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return self._store.get_vote(proposal_id, voter) is not None

    def tally(self, proposal_id: int) -> Optional[VotingResult]:
        """The decision finalize would take right now, without taking it."""
        proposal = self._store.get_proposal(proposal_id)
        return VotingResult.for_proposal(proposal) if proposal is not None else None

    # ── Internals ─────────────────────────────────────────────────────

    def _require_proposal(self, proposal_id: int) -> Proposal:
        proposal = self._store.get_proposal(proposal_id)
        if proposal is None:
            raise LifecycleError(
                ErrorCode.PROPOSAL_NOT_FOUND, f"proposal #{proposal_id} does not exist"
            )
        return proposal

    @staticmethod
    def _require_caller(ctx: CallContext, expected: str, role: str) -> None:
        if ctx.caller != expected:
            raise AuthorizationError(
                ErrorCode.NOT_AUTHORIZED, f"{ctx.caller} is not the {role}"
            )

    def _collect_fee(self, fee: int, payer: str, governance: str) -> None:
        if not self._funds.transfer(fee, payer, governance):
            raise FundsTransferError(f"fee of {fee} from {payer} to {governance} failed")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configuration": self.configuration.to_dict(),
            "proposalCount": self.get_proposal_count(),
        }

    def __repr__(self) -> str:
        return (
            f"<ProposalLedger proposals={self.configuration.next_proposal_id} "
            f"governance={self.configuration.governance_contract}>"
        )
