"""Exception taxonomy for the Stocky engine."""


class StockyError(Exception):
    """Base exception for all Stocky errors."""
    pass


class LedgerError(StockyError):
    """Base exception for rejected ledger operations. State is left unchanged."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when a buy or short cover costs more than the available cash."""
    pass


class InsufficientShares(LedgerError):
    """Raised when a sell or short cover exceeds the shares held."""
    pass


class InvalidOrder(LedgerError):
    """Raised for malformed orders (empty symbol, bad share count or price)."""
    pass


class InvalidLevelTransition(StockyError):
    """Raised when completing a level that is not current or already completed."""
    pass


class QuoteUnavailable(StockyError):
    """Raised by a quote source that has no quote for a symbol."""
    pass
