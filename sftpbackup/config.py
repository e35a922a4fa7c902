import os
from datetime import date
from typing import NamedTuple

DATE_FORMAT = "%Y-%m-%d"


class Transfer(NamedTuple):
    """Everything one backup run needs, built once by the cli."""
    server: str = ""
    port: int = 22
    username: str = "root"
    password: str = ""
    remote_dir: str = ""
    local_dir: str = "."
    agent_path: str = ""
    known_hosts: object = ()  # () asyncssh default, None disables checking

    @property
    def address(self):
        return f"{self.server}:{self.port}"


def dated_dir(local_dir, today=None):
    """local_dir/YYYY-MM-DD for the given (or current local) date"""
    today = today or date.today()
    return os.path.join(local_dir, today.strftime(DATE_FORMAT))
