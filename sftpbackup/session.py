import asyncio
import logging
from contextlib import asynccontextmanager

import asyncssh

from .errors import ConnectError, SubsystemError

logger = logging.getLogger(__name__)


async def probe_agent(path):
    """Return path if an ssh-agent answers on it, otherwise None.

    An unreachable agent only means one auth method less, so nothing is raised.
    """
    if not path:
        return None
    try:
        _, writer = await asyncio.open_unix_connection(path)
    except OSError as exc:
        logger.debug("ssh-agent at %s unavailable: %s", path, exc)
        return None
    writer.close()
    await writer.wait_closed()
    return path


@asynccontextmanager
async def agent_keys(path):
    """Yield the keys held by the ssh-agent at path, or None without one.

    The agent stays connected for the block, since signing goes through it.
    """
    if not await probe_agent(path):
        yield None
        return
    async with asyncssh.connect_agent(path) as agent:
        try:
            keys = await agent.get_keys()
        except (OSError, asyncssh.Error) as exc:
            logger.debug("ssh-agent at %s gave no keys: %s", path, exc)
            keys = None
        yield keys


def auth_options(tr, keys=None):
    """Keyword arguments for asyncssh.connect with auth candidates in order:
    agent keys first, then the password when one is configured.

    Only the agent's keys are offered; key files under ~/.ssh are not read.
    """
    options = {'agent_path': None, 'client_keys': None}
    methods = []
    if keys:
        options['client_keys'] = keys
        methods.append('publickey')
    if tr.password:
        options['password'] = tr.password
        methods.append('password')
    if methods:
        options['preferred_auth'] = methods
    return options


@asynccontextmanager
async def open_session(tr):
    """Connect to tr.server and yield a started sftp client.

    Both the client and the connection are closed when the block exits,
    whatever the outcome.
    """
    async with agent_keys(tr.agent_path) as keys:
        options = auth_options(tr, keys)
        try:
            conn = await asyncssh.connect(tr.server, tr.port, username=tr.username,
                                          known_hosts=tr.known_hosts, **options)
        except (OSError, asyncssh.Error) as exc:
            logger.error("Error unable to connect to [%s]: %s", tr.address, exc)
            raise ConnectError(f"unable to connect to [{tr.address}]: {exc}") from exc

        async with conn:
            try:
                sftp = await conn.start_sftp_client()
            except (OSError, asyncssh.Error) as exc:
                logger.error("Error unable to start sftp subsystem on [%s]: %s", tr.address, exc)
                raise SubsystemError(f"unable to start sftp subsystem: {exc}") from exc
            async with sftp:
                yield sftp
