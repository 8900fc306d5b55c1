"""
Funds Transfer

The ledger never moves value itself. Proposal fees are paid through a
``FundsTransfer`` collaborator supplied by the host:

    transfer(amount, sender, recipient) -> bool

``InMemoryFundsTransfer`` keeps balances and an append-only event log, for
tests and local runs.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .logger import get_logger

logger = get_logger(__name__)


class FundsTransfer(Protocol):
    """Value-transfer backend."""

    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        """Move *amount* from *sender* to *recipient*. All-or-nothing."""
        ...


@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every successful transfer."""
    amount: int
    sender: str
    recipient: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "from": self.sender,
            "to": self.recipient,
            "timestamp": self.timestamp,
        }


class InMemoryFundsTransfer:
    """
    Balance book with transfer log.

    With ``unlimited=True`` senders are never short of funds; balances of
    recipients are still credited.
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None, unlimited: bool = False):
        self._balances: Dict[str, int] = dict(balances or {})
        self._unlimited = unlimited
        self._events: List[TransferEvent] = []

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def credit(self, address: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError("Credit amount must be positive")
        self._balances[address] = self.balance_of(address) + amount

    @property
    def events(self) -> List[TransferEvent]:
        return list(self._events)

    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        """
        Move *amount* and log the event.

        A zero amount or a transfer to oneself succeeds without touching
        balances; it is still logged. Negative amounts are refused.
        """
        if amount < 0:
            logger.warning(f"Transfer rejected: {sender} -> {recipient} amount={amount}")
            return False
        if amount == 0 or sender == recipient:
            self._events.append(TransferEvent(amount=amount, sender=sender, recipient=recipient))
            logger.debug(f"Transfer (no-op): {sender} -> {recipient} {amount}")
            return True
        if not self._unlimited:
            balance = self.balance_of(sender)
            if balance < amount:
                logger.warning(
                    f"Transfer rejected: {sender} has {balance}, needs {amount}"
                )
                return False
            self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        self._events.append(TransferEvent(amount=amount, sender=sender, recipient=recipient))
        logger.debug(f"Transfer: {sender} -> {recipient} {amount}")
        return True

    def __repr__(self) -> str:
        return f"<InMemoryFundsTransfer accounts={len(self._balances)} events={len(self._events)}>"
