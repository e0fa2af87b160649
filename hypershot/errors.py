class HypershotError(Exception):
    """Base class for snapshot errors."""


class FetchFailure(HypershotError):
    """A single resource could not be retrieved or persisted."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url
        self.message = message


class PipelineFailure(HypershotError):
    """The snapshot run stopped before every phase completed."""
