class EasyKindleError(Exception):
    """Base class for errors that abort a command."""


class ConfigError(EasyKindleError):
    pass


class SyncFileError(EasyKindleError):
    """The reading-list file is missing or cannot be read/written."""


class PackagingError(EasyKindleError):
    pass


class DeliveryError(EasyKindleError):
    pass
