class InvalidArgument(ValueError):
    """Raised when a caller passes input the scheduling core refuses to work with."""
