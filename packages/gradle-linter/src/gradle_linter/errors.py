class MigrationError(Exception):
    """Base class for errors raised by the migration engine"""


class InvalidProjectError(MigrationError):
    """The given path is not a usable Gradle project root"""


class RuleCatalogError(MigrationError):
    """The rule catalog could not be loaded or failed validation"""


class FixRequestError(MigrationError):
    """A fix request could not be resolved against the current analysis"""
