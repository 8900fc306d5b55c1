"""
Grant Proposal Governance

Provides:
  - ProposalType / ProposalStatus / Proposal / ProposalUpdate  (proposals.py)
  - VoteRecord / VotingResult / decide                          (voting.py)
  - LedgerConfiguration                                         (configuration.py)
  - LedgerStore / InMemoryLedgerStore                           (store.py)
  - Result                                                      (result.py)
  - CallContext / ProposalLedger                                (ledger.py)
"""

from .proposals import (
    Proposal,
    ProposalStatus,
    ProposalType,
    ProposalUpdate,
)
from .voting import (
    VoteRecord,
    VotingResult,
    decide,
)
from .configuration import LedgerConfiguration
from .store import (
    InMemoryLedgerStore,
    LedgerStore,
)
from .result import Result
from .ledger import (
    CallContext,
    ProposalLedger,
)

__all__ = [
    # Proposals
    "Proposal",
    "ProposalStatus",
    "ProposalType",
    "ProposalUpdate",
    # Voting
    "VoteRecord",
    "VotingResult",
    "decide",
    # Ledger
    "CallContext",
    "InMemoryLedgerStore",
    "LedgerConfiguration",
    "LedgerStore",
    "ProposalLedger",
    "Result",
]
