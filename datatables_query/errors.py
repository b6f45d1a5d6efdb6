"""Exceptions shared across the package."""


class ConfigurationError(ValueError):
    """Raised when a table or column declaration cannot be used.

    Examples are duplicate public column names or a storage path that does
    not exist on the queried entity type. These are programming errors of the
    integrating application and are never caused by client input.
    """

    pass
