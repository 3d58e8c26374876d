"""Exceptions raised by the catalog client and pipeline."""


class CatalogError(Exception):
    """Base class for failures talking to the catalog service."""


class TransportError(CatalogError):
    """The request could not be completed (network failure or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(CatalogError):
    """The response body did not have the expected shape."""


class InvalidTransitionError(RuntimeError):
    """A request state was asked to move backwards or out of a terminal state."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move request state from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested


class DuplicateMeasuresError(RuntimeError):
    """A measures fetch was registered or resolved twice for the same taxon."""

    def __init__(self, taxon_id: int, reason: str) -> None:
        super().__init__(f"Taxon {taxon_id}: {reason}")
        self.taxon_id = taxon_id
