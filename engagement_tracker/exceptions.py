"""Project-wide custom exception types."""


class EmptyInputError(ValueError):
    """Raised when the aggregation pipeline is given no participation records."""

    def __init__(self, message: str = "No participation records available") -> None:  # noqa: D401 – simple constructor
        super().__init__(message)
