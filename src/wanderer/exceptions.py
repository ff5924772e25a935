"""
Exception hierarchy for the Wanderer simulation core.
"""


class WandererError(Exception):
    """Base exception for the Wanderer project."""


class DefinitionError(WandererError, KeyError):
    """Raised when an item, creature or tile id has no data definition."""

    def __str__(self):
        return Exception.__str__(self)


class SaveError(WandererError):
    """Raised when a snapshot cannot be serialized or restored."""


class SnapshotVersionError(SaveError):
    """Raised when a snapshot carries a version tag we do not understand."""

    def __init__(self, version):
        super().__init__(f"Unsupported snapshot version: {version!r}")
        self.version = version
