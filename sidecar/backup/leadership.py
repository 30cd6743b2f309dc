"""
Leadership detection.

Backups only run on the replica that reports itself as master, so at most
one sidecar in a replicated deployment does the work. The answer is read
fresh from the store on every call and never cached.
"""

from .connection import StoreConnection


PRIMARY_ROLE = 'master'


def is_leader(connection: StoreConnection) -> bool:
    """
    Check whether the connected store is the writable primary.

    Args:
        connection: Open store connection

    Returns:
        True if the replication report carries role:master

    Raises:
        StoreError: If the INFO query itself fails
    """
    report = connection.replication_info()
    return str(report.get('role', '')).strip() == PRIMARY_ROLE
