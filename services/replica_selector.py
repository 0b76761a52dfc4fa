"""
Round-robin replica selection.

ReplicaSelector keeps one cursor per tenant: the index of the replica the
next read for that tenant should go to. Cursors live in memory for the life
of the process; each instance of the service balances independently.

Concurrency: reading a cursor, picking the replica and advancing the cursor
happen under that tenant's lock, so two concurrent reads for one tenant
never get the same index from the same cursor position. Tenants do not
contend with each other.
"""

import logging
import threading
from typing import Dict, Sequence, Tuple

logger = logging.getLogger(__name__)


class NoReplicasAvailableError(Exception):
    """
    Raised when a read must go to a replica but the replica list is empty.

    Attributes:
        message: Human-readable error description
        code: Span attribute key identifying the failure
    """
    def __init__(self, message: str, code: str = "replica_connection_names_not_found"):
        self.message = message
        self.code = code
        super().__init__(message)


class ReplicaSelector:
    """Per-tenant round-robin cursor over an ordered replica list."""

    def __init__(self) -> None:
        self._cursors: Dict[str, int] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, tenant_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(tenant_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[tenant_id] = lock
            return lock

    def select(self, tenant_id: str, replicas: Sequence[str]) -> Tuple[str, int]:
        """
        Pick the next replica for a tenant and advance its cursor.

        The replica list may differ between calls (it can arrive per request).
        A cursor that no longer fits the list is reset to 0.

        Args:
            tenant_id: Tenant whose cursor to use
            replicas: Ordered replica connection names

        Returns:
            Tuple of (selected replica name, index used before advancing)

        Raises:
            NoReplicasAvailableError: If replicas is empty
        """
        replica_count = len(replicas)
        if replica_count == 0:
            raise NoReplicasAvailableError(f"No replica connections available for tenant={tenant_id}")

        with self._lock_for(tenant_id):
            index = self._cursors.get(tenant_id, 0)
            if index >= replica_count:
                logger.info(
                    f"Replica cursor out of range, resetting: tenant_id={tenant_id}, "
                    f"index={index}, replica_count={replica_count}"
                )
                index = 0
            selected = replicas[index]
            self._cursors[tenant_id] = (index + 1) % replica_count

        return selected, index

    def snapshot(self) -> Dict[str, int]:
        """Copy of the current tenant -> next index table."""
        with self._locks_guard:
            tenants = list(self._locks)
        cursors = {}
        for tenant_id in tenants:
            with self._lock_for(tenant_id):
                if tenant_id in self._cursors:
                    cursors[tenant_id] = self._cursors[tenant_id]
        return cursors
