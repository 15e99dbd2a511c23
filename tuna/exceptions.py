"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class TunaError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(TunaError):
    """Raised for issues related to configuration loading or validation."""


class TransferError(TunaError):
    """Raised when a remote file cannot be fetched to its destination."""


class AssetError(TunaError):
    """Raised when a local asset file cannot be moved, copied or removed."""


class CompatibilityError(TunaError):
    """Raised when the host API version differs from the targeted one."""


class ModuleLoadError(TunaError):
    """
    Raised when a stage of the native module load sequence fails.
    """
