"""
Proposal Voting

One member, one vote:
  - A vote is a boolean (in favour / against)
  - At most one vote per (proposal, voter), never revoked or changed
  - Quorum: votes_for + votes_against >= quorum
  - Threshold: votes_for >= threshold (an absolute count, not a share
    of the votes cast)
"""

from dataclasses import dataclass
from typing import Any, Dict

from .proposals import Proposal, ProposalStatus


@dataclass(frozen=True)
class VoteRecord:
    """A single vote cast by a voter. Keyed by (proposal_id, voter)."""
    proposal_id: int
    voter: str
    vote: bool
    height: int

    @property
    def key(self):
        return (self.proposal_id, self.voter)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "vote": self.vote,
            "height": self.height,
        }


@dataclass(frozen=True)
class VotingResult:
    """Tally of a proposal and the decision it yields."""
    proposal_id: int
    votes_for: int
    votes_against: int
    quorum: int
    threshold: int

    @classmethod
    def for_proposal(cls, proposal: Proposal) -> "VotingResult":
        return cls(
            proposal_id=proposal.id,
            votes_for=proposal.votes_for,
            votes_against=proposal.votes_against,
            quorum=proposal.quorum,
            threshold=proposal.threshold,
        )

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against

    @property
    def quorum_met(self) -> bool:
        return self.total_votes >= self.quorum

    @property
    def threshold_met(self) -> bool:
        return self.votes_for >= self.threshold

    @property
    def is_approved(self) -> bool:
        return self.quorum_met and self.threshold_met

    @property
    def outcome(self) -> ProposalStatus:
        return ProposalStatus.APPROVED if self.is_approved else ProposalStatus.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
            "totalVotes": self.total_votes,
            "quorum": self.quorum,
            "threshold": self.threshold,
            "quorumMet": self.quorum_met,
            "thresholdMet": self.threshold_met,
            "outcome": self.outcome.value,
        }


def decide(votes_for: int, votes_against: int, quorum: int, threshold: int) -> ProposalStatus:
    """Finalization decision as a pure function of the tally."""
    return VotingResult(
        proposal_id=-1,
        votes_for=votes_for,
        votes_against=votes_against,
        quorum=quorum,
        threshold=threshold,
    ).outcome
