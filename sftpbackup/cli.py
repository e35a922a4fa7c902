import asyncio
import logging
import sys

import click
from tqdm.contrib.logging import logging_redirect_tqdm

from .config import Transfer
from .download import backup
from .errors import TransferError

logger = logging.getLogger(__name__)


def run(coro):
    """Run coro to completion, on uvloop when it is installed."""
    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop is not available, using default loop")
        return asyncio.run(coro)
    return uvloop.run(coro)


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
    )
    # asyncssh logs every channel at INFO
    logging.getLogger("asyncssh").setLevel(logging.WARNING)


@click.command()
@click.option("--server", default="", help="Server DNS name")
@click.option("--port", default=22, show_default=True, help="Server port number")
@click.option("-u", "--username", default="root", show_default=True, help="User name")
@click.option("-p", "--password", default="", help="Password")
@click.option("--remotedir", default="", help="Remote directory")
@click.option("--localdir", default=".", show_default=True, help="Local directory")
@click.option("--agent-sock", envvar="SSH_AUTH_SOCK", default="", help="ssh-agent socket [$SSH_AUTH_SOCK]")
@click.option("--known-hosts", type=click.Path(dir_okay=False), default=None,
              help="known_hosts file (default ~/.ssh/known_hosts)")
@click.option("--no-host-check", is_flag=True, help="Do not verify the server host key")
@click.option("-v", "--verbose", is_flag=True, help="Log every file found")
def cli(server, port, username, password, remotedir, localdir, agent_sock, known_hosts, no_host_check, verbose):
    """Copy the files of one remote directory into LOCALDIR/YYYY-MM-DD."""
    setup_logging(verbose)

    if no_host_check:
        known_hosts = None
    elif known_hosts is None:
        known_hosts = ()

    tr = Transfer(server=server, port=port, username=username, password=password,
                  remote_dir=remotedir, local_dir=localdir, agent_path=agent_sock,
                  known_hosts=known_hosts)

    logger.info("Connecting: %s", tr.server)
    with logging_redirect_tqdm():
        try:
            stats = run(backup(tr))
        except TransferError as exc:
            logger.critical("%s", exc)
            sys.exit(1)

    logger.info("Backup done. %s", stats.summary())


if __name__ == '__main__':
    cli()
