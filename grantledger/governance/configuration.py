"""
Ledger Configuration

Runtime configuration owned by a single ProposalLedger: the id counter,
the proposal cap, the submission fee and the governance contract address.
The governance contract can be set once and never changed afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import LedgerConfig
from ..constants import DEFAULT_MAX_PROPOSALS, DEFAULT_PROPOSAL_FEE, NULL_ADDRESS
from ..exceptions import AuthorizationError, ErrorCode, LifecycleError, ValidationError


@dataclass
class LedgerConfiguration:
    next_proposal_id: int = 0
    max_proposals: int = DEFAULT_MAX_PROPOSALS
    proposal_fee: int = DEFAULT_PROPOSAL_FEE
    null_address: str = NULL_ADDRESS
    _governance_contract: Optional[str] = None

    @classmethod
    def from_config(cls, config: LedgerConfig) -> "LedgerConfiguration":
        return cls(
            max_proposals=config.ledger.max_proposals,
            proposal_fee=config.ledger.proposal_fee,
            null_address=config.ledger.null_address,
        )

    # ── Governance contract ───────────────────────────────────────────

    @property
    def governance_contract(self) -> Optional[str]:
        return self._governance_contract

    @property
    def has_governance(self) -> bool:
        return self._governance_contract is not None

    def require_governance(self) -> str:
        if self._governance_contract is None:
            raise AuthorizationError(
                ErrorCode.NOT_AUTHORIZED, "no governance contract registered"
            )
        return self._governance_contract

    def set_governance_contract(self, address: str) -> None:
        if not address or address == self.null_address:
            raise ValidationError(
                ErrorCode.INVALID_GOVERNANCE_ADDRESS,
                f"{address!r} cannot be the governance contract",
            )
        if self._governance_contract is not None:
            raise LifecycleError(
                ErrorCode.GOVERNANCE_ALREADY_SET,
                f"governance contract already set to {self._governance_contract}",
            )
        self._governance_contract = address

    # ── Fee ───────────────────────────────────────────────────────────

    def set_proposal_fee(self, new_fee: int) -> None:
        self.require_governance()
        if new_fee < 0:
            raise ValidationError(ErrorCode.INVALID_FEE, f"fee cannot be negative, got {new_fee}")
        self.proposal_fee = new_fee

    # ── Id allocation ─────────────────────────────────────────────────

    @property
    def has_capacity(self) -> bool:
        return self.next_proposal_id < self.max_proposals

    def allocate_id(self) -> int:
        """Return the next proposal id and advance the counter."""
        proposal_id = self.next_proposal_id
        self.next_proposal_id += 1
        return proposal_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextProposalId": self.next_proposal_id,
            "maxProposals": self.max_proposals,
            "proposalFee": self.proposal_fee,
            "governanceContract": self._governance_contract,
        }
