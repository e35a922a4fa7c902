class TransferError(Exception):
    """Base for every failure that ends a backup run."""


class ConnectError(TransferError):
    pass


class SubsystemError(TransferError):
    pass


class ListingError(TransferError):
    pass


class LocalDirError(TransferError):
    pass


class LocalFileError(TransferError):
    pass


class RemoteOpenError(TransferError):
    pass


class CopyError(TransferError):
    pass
