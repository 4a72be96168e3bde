"""Errors raised outside the provider layer (persistence and configuration)."""


class PersistenceError(Exception):
    """A store read or write failed. Logged by callers; never aborts sibling work."""


class ConfigurationError(Exception):
    """Fatal configuration problem (e.g. missing provider credentials).

    Raised before any work begins; aborts the whole run.
    """
