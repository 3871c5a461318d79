"""
Exception hierarchy.

Every error is fatal to the operation that raised it. Nothing in rtwallet
retries; callers decide whether to try again.
"""

from __future__ import annotations


class RtWalletError(Exception):
    """Base class for all rtwallet errors"""

    pass


class TransportError(RtWalletError):
    """Node unreachable, authentication failed or the HTTP exchange broke"""

    pass


class NodeRPCError(TransportError):
    """The node answered with a JSON-RPC error object"""

    def __init__(self, method: str, code: int, message: str):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code} in {method}: {message}")


class PreconditionError(RtWalletError):
    """Operation attempted on a wallet or transaction in the wrong state"""

    pass


class InsufficientFundsError(PreconditionError):
    """Funding wallet has no spendable balance for the requested payment"""

    pass


class ReconstructionError(RtWalletError):
    """A script or an input/output reference could not be resolved"""

    pass


class AddressValidationError(RtWalletError):
    """Address is malformed or belongs to a different network"""

    pass
