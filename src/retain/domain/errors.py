"""Exception hierarchy shared by every layer."""


class RetainError(Exception):
    """Base class for all retain errors."""


class InvalidInputError(RetainError):
    """Input rejected at the boundary before it reaches the scheduling core."""


class PersistenceError(RetainError):
    """The progress store could not be read or written."""


class CatalogError(RetainError):
    """The content catalog could not be loaded."""


class UnknownItemError(CatalogError):
    """A flashcard or question id is not present in the catalog."""


class CatalogUnavailableError(RetainError):
    """A query needs the content catalog but none is configured."""
