class SimulationError(RuntimeError):
    """A basket cannot be simulated; no partial result is produced."""

class NoActiveAssetsError(SimulationError):
    pass

class InsufficientHistoryError(SimulationError):
    def __init__(self, overlap: int, required: int, start=None):
        self.overlap = overlap
        self.required = required
        self.start = start
        since = f" starting from {start:%Y-%m-%d}" if start is not None else ""
        super().__init__(
            f"Insufficient common historical data: {overlap} overlapping days{since}, "
            f"simulation requires at least {required}."
        )
