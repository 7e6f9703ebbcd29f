"""
Matching Engine Exceptions
"""


class MatchingError(Exception):
    """Base class for matching engine errors."""


class StrategyQueryError(MatchingError):
    """A single strategy's repository query failed or timed out."""

    def __init__(self, strategy_id: str, message: str):
        self.strategy_id = strategy_id
        super().__init__(f"{strategy_id}: {message}")


class LineItemMatchError(MatchingError):
    """Unexpected failure while matching one line item."""

    def __init__(self, index: int, message: str):
        self.index = index
        super().__init__(f"Line item {index}: {message}")


class BatchSetupError(MatchingError):
    """Failure before any line item was processed."""


class RepositoryUnavailableError(BatchSetupError):
    """Shipment repository could not be reached."""
