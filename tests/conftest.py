import asyncio
import os
import socket
from contextlib import asynccontextmanager
from datetime import date

import asyncssh
import pytest

from sftpbackup import Transfer, backup

PASSWORD = "secret"
TODAY = date(2024, 5, 17)


class PasswordServer(asyncssh.SSHServer):
    def begin_auth(self, username):
        return True

    def password_auth_supported(self):
        return True

    def validate_password(self, username, password):
        return password == PASSWORD


@asynccontextmanager
async def sftp_server(root, sftp=True):
    """Local ssh server on a free port; sftp is served chrooted to root."""
    kwargs = {}
    if sftp:
        kwargs['sftp_factory'] = lambda chan: asyncssh.SFTPServer(chan, chroot=str(root))
    key = asyncssh.generate_private_key('ssh-ed25519')
    server = await asyncssh.listen('127.0.0.1', 0, server_factory=PasswordServer,
                                   server_host_keys=[key], **kwargs)
    try:
        yield server.get_port()
    finally:
        server.close()
        await server.wait_closed()


def free_port():
    with socket.socket() as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def remote_root(tmp_path):
    """remote/incoming holds two files and two subdirectories."""
    root = tmp_path / "remote"
    incoming = root / "incoming"
    incoming.mkdir(parents=True)
    (incoming / "notes.txt").write_text("first line\nsecond line\n")
    (incoming / "dump.bin").write_bytes(os.urandom(200 * 1024))
    (incoming / "archive").mkdir()
    (incoming / "archive" / "old.txt").write_text("not copied")
    (incoming / "empty").mkdir()
    (root / "onlydirs" / "a").mkdir(parents=True)
    (root / "onlydirs" / "b").mkdir()
    return root


@pytest.fixture
def local_dir(tmp_path):
    path = tmp_path / "local"
    path.mkdir()
    return path


@pytest.fixture
def run_backup(remote_root, local_dir):
    """Runs a full backup against an in-process server; keyword arguments
    override the Transfer fields."""
    def _run(sftp=True, **overrides):
        async def go():
            async with sftp_server(remote_root, sftp=sftp) as port:
                fields = dict(server='127.0.0.1', port=port, username='backup', password=PASSWORD,
                              remote_dir='/incoming', local_dir=str(local_dir), known_hosts=None)
                fields.update(overrides)
                return await backup(Transfer(**fields), TODAY)
        return asyncio.run(go())
    return _run
