"""Primary key generation for tasks, subtasks, users, workspaces and activity logs."""

from cuid2 import Cuid

# 25 characters: fits the String primary key columns and the id path params.
ID_LENGTH = 25

_ids = Cuid(length=ID_LENGTH)


def generate_cuid() -> str:
    """Return a new CUID2 string."""
    return _ids.generate()
