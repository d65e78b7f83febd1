class OrdoError(Exception):
    """Base class for errors raised by the ordering core."""


class CatalogFetchError(OrdoError):
    """A catalog or settings read from the data store failed."""


class ValidationError(OrdoError):
    """Customer input violates an ordering rule."""


class PersistenceError(OrdoError):
    """An order could not be written; nothing was persisted."""


class DispatchError(OrdoError):
    """The outbound order message could not be handed to its channel."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        # manual-send link, when one could be built
        self.url = url


class NotFoundError(OrdoError):
    """A referenced order or catalog record does not exist."""
