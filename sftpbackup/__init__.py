from .config import Transfer, dated_dir
from .download import backup, download
from .errors import (ConnectError, CopyError, ListingError, LocalDirError, LocalFileError, RemoteOpenError,
                     SubsystemError, TransferError)
from .session import open_session

__version__ = "0.1.0"
