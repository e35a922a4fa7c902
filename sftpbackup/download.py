import logging
import os
import posixpath
import stat
import time

import asyncssh
import tqdm
from asyncssh.constants import FILEXFER_TYPE_DIRECTORY

from .config import dated_dir
from .errors import CopyError, ListingError, LocalDirError, LocalFileError, RemoteOpenError
from .session import open_session

logger = logging.getLogger(__name__)

BLOCK_SIZE = 64 * 1024


def hr_size(size):
    """Bytes count as a short string, e.g. 3.00 MB."""
    units = ["B", "kB", "MB", "GB", "TB", "PB"]
    for unit in units[:-1]:
        if size <= 1024:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} {units[-1]}"


class TransferStats(object):
    """Counts what one run received, for the closing summary."""

    def __init__(self):
        self.files = []
        self.total_bytes = 0
        self.start_time = time.time()

    @property
    def total_files(self):
        return len(self.files)

    @property
    def avg_speed(self):
        elapsed = time.time() - self.start_time
        return self.total_bytes / elapsed if elapsed > 0 else 0.0

    def add(self, name, nbytes):
        self.files.append(name)
        self.total_bytes += nbytes

    def summary(self):
        return f"Downloaded: {self.total_files} files ({hr_size(self.total_bytes)}), " \
               f"Avg. Speed: {hr_size(self.avg_speed)}/s, " \
               f"Total time: {time.time() - self.start_time:.2f} seconds"


def display_name(name):
    return name.decode("utf-8", errors="replace")


def is_dir(entry):
    attrs = entry.attrs
    if attrs.type == FILEXFER_TYPE_DIRECTORY:
        return True
    return attrs.permissions is not None and stat.S_ISDIR(attrs.permissions)


async def list_files(sftp, remote_dir):
    """One readdir of remote_dir, directories dropped, listing order kept.

    Names stay bytes so entries that are not valid UTF-8 are still copied.
    """
    try:
        entries = await sftp.readdir(os.fsencode(remote_dir or "."))
    except (OSError, asyncssh.Error) as exc:
        logger.error("Error while listing %r: %s", remote_dir, exc)
        raise ListingError(f"unable to list {remote_dir!r}: {exc}") from exc

    files = [entry for entry in entries if not is_dir(entry)]
    for entry in files:
        logger.debug("Found file: %s", display_name(entry.filename))
    return files


def make_dst_dir(local_dir, today=None):
    dst = dated_dir(local_dir, today)
    try:
        os.makedirs(dst, mode=0o777, exist_ok=True)
    except OSError as exc:
        logger.error("Error can not create local dir %s: %s", dst, exc)
        raise LocalDirError(f"unable to create {dst}: {exc}") from exc
    logger.info("Created dir %s", dst)
    return dst


async def file_download(sftp, remote_dir, entry, dst):
    """Copy one remote file into dst, truncating any local file of that name.

    Returns the number of bytes written.
    """
    name = entry.filename
    shown = display_name(name)
    local_path = os.path.join(os.fsencode(dst), name)
    try:
        local = open(local_path, "wb")
    except OSError as exc:
        logger.error("Error can not open local file %s: %s", os.path.join(dst, shown), exc)
        raise LocalFileError(f"unable to create {os.path.join(dst, shown)}: {exc}") from exc

    with local:
        remote_path = posixpath.join(os.fsencode(remote_dir), name)
        shown_path = display_name(remote_path)
        try:
            remote = await sftp.open(remote_path, "rb")
        except (OSError, asyncssh.Error) as exc:
            logger.error("Error while opening %s: %s", shown_path, exc)
            raise RemoteOpenError(f"unable to open {shown_path}: {exc}") from exc

        async with remote:
            progress = tqdm.tqdm(total=entry.attrs.size, desc=shown, disable=None, unit='B', unit_scale=True,
                                 unit_divisor=1024, ascii=True, leave=False)
            copied = 0
            with progress:
                try:
                    while True:
                        data = await remote.read(BLOCK_SIZE)
                        if not data:
                            break
                        local.write(data)
                        copied += len(data)
                        progress.update(len(data))
                except (OSError, asyncssh.Error) as exc:
                    logger.error("Error while receiving %s: %s", shown_path, exc)
                    raise CopyError(f"unable to copy {shown_path}: {exc}") from exc

    logger.info("Received '%s'", shown)
    return copied


async def download(sftp, tr, today=None):
    """Copy every non-directory entry of tr.remote_dir into a dated local dir.

    The first failure aborts the run; files already copied stay where they are.
    """
    files = await list_files(sftp, tr.remote_dir)
    dst = make_dst_dir(tr.local_dir, today)

    stats = TransferStats()
    for entry in files:
        nbytes = await file_download(sftp, tr.remote_dir, entry, dst)
        stats.add(display_name(entry.filename), nbytes)
    return stats


async def backup(tr, today=None):
    async with open_session(tr) as sftp:
        return await download(sftp, tr, today)
