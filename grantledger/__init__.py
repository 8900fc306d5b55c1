"""
Grant Ledger Package

Proposal lifecycle ledger for single-organization grant governance.
Core imports are lazily loaded; for direct access import from submodules:

    from grantledger.governance import ProposalLedger, CallContext
    from grantledger.exceptions import ErrorCode
"""

def __getattr__(name):
    """Lazy module loading."""
    if name in ('ProposalLedger', 'CallContext', 'Result'):
        from . import governance
        return getattr(governance, name)
    elif name == 'ErrorCode':
        from .exceptions import ErrorCode
        return ErrorCode
    raise AttributeError(f"module 'grantledger' has no attribute {name!r}")

__all__ = ['ProposalLedger', 'CallContext', 'Result', 'ErrorCode']
