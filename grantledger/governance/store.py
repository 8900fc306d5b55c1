"""
Ledger Storage

``LedgerStore`` is the persistence boundary of the proposal ledger. It holds
four maps:

    proposals         id            → Proposal
    proposal_updates  id            → ProposalUpdate   (one slot per id)
    titles            title         → id
    votes             (id, voter)   → VoteRecord

The ledger validates every precondition before it writes, so a store only
needs read-your-writes consistency; it never sees a partially applied
operation. ``InMemoryLedgerStore`` is the reference implementation.
"""

from typing import Any, Dict, Optional, Protocol, Tuple

from .proposals import Proposal, ProposalUpdate
from .voting import VoteRecord


class LedgerStore(Protocol):
    """Persistence backend for ledger records."""

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        """Return the stored record itself (not a copy)."""
        ...

    def put_proposal(self, proposal: Proposal) -> None:
        ...

    def get_update(self, proposal_id: int) -> Optional[ProposalUpdate]:
        ...

    def put_update(self, update: ProposalUpdate) -> None:
        ...

    def lookup_title(self, title: str) -> Optional[int]:
        ...

    def reindex_title(self, old_title: Optional[str], new_title: str, proposal_id: int) -> None:
        """Drop *old_title* (if any) and point *new_title* at *proposal_id*."""
        ...

    def get_vote(self, proposal_id: int, voter: str) -> Optional[VoteRecord]:
        ...

    def put_vote(self, record: VoteRecord) -> None:
        ...


class InMemoryLedgerStore:
    """Dict-backed LedgerStore."""

    def __init__(self):
        self._proposals: Dict[int, Proposal] = {}
        self._updates: Dict[int, ProposalUpdate] = {}
        self._titles: Dict[str, int] = {}
        self._votes: Dict[Tuple[int, str], VoteRecord] = {}

    # ── Proposals ─────────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        return self._proposals.get(proposal_id)

    def put_proposal(self, proposal: Proposal) -> None:
        self._proposals[proposal.id] = proposal

    # ── Updates ───────────────────────────────────────────────────────

    def get_update(self, proposal_id: int) -> Optional[ProposalUpdate]:
        return self._updates.get(proposal_id)

    def put_update(self, update: ProposalUpdate) -> None:
        self._updates[update.proposal_id] = update

    # ── Title index ───────────────────────────────────────────────────

    def lookup_title(self, title: str) -> Optional[int]:
        return self._titles.get(title)

    def reindex_title(self, old_title: Optional[str], new_title: str, proposal_id: int) -> None:
        if old_title is not None and self._titles.get(old_title) == proposal_id:
            del self._titles[old_title]
        self._titles[new_title] = proposal_id

    # ── Votes ─────────────────────────────────────────────────────────

    def get_vote(self, proposal_id: int, voter: str) -> Optional[VoteRecord]:
        return self._votes.get((proposal_id, voter))

    def put_vote(self, record: VoteRecord) -> None:
        if record.key in self._votes:
            raise KeyError(f"vote {record.key} already recorded")
        self._votes[record.key] = record

    # ── Diagnostics ───────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposals": {pid: p.to_dict() for pid, p in self._proposals.items()},
            "proposalUpdates": {pid: u.to_dict() for pid, u in self._updates.items()},
            "proposalsByTitle": dict(self._titles),
            "votes": [v.to_dict() for v in self._votes.values()],
        }

    def __repr__(self) -> str:
        return f"<InMemoryLedgerStore proposals={len(self._proposals)} votes={len(self._votes)}>"
