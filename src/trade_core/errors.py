"""Error taxonomy shared by the matching engine, strategies and the backtest driver."""


class OrderValidationError(ValueError):
    """Raised when an order cannot be constructed from the given fields."""


class OrderFormatError(ValueError):
    """Raised when an order text record cannot be parsed or written."""


class OrderStateError(RuntimeError):
    """Raised when fill-only data is used on a pending order, or an order is filled twice."""


class UnknownAccountError(LookupError):
    """Raised when a blotter is requested for an account the broker has never seen."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Unknown account: {account_id!r}")
        self.account_id = account_id


class StrategyFault(RuntimeError):
    """Raised when strategy evaluation fails during a run."""


class BacktestStateError(RuntimeError):
    """Raised when a driver is reconfigured or restarted while a run is active."""
