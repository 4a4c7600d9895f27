"""
PermGate Audit Trail

Bounded, queryable log of permission decisions. The oldest records are
dropped first once capacity is reached. Delivery to durable storage is
left to subscribers.
"""

from __future__ import annotations
from typing import Callable, Deque, List, Optional
from collections import deque
from datetime import datetime
import logging
import threading

from ..schemas.decisions import AuditRecord


logger = logging.getLogger(__name__)


DEFAULT_CAPACITY = 1000

AuditListener = Callable[[AuditRecord], None]


class AuditTrail:
    """
    In-memory ring buffer of AuditRecords.

    Usage:
        trail = AuditTrail(capacity=1000)
        unsubscribe = trail.subscribe(shipper.send)
        trail.query(user_id="u1", resource="content")
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("Audit capacity must be at least 1")
        self._records: Deque[AuditRecord] = deque(maxlen=capacity)
        self._listeners: List[AuditListener] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._records.maxlen

    def record(self, entry: AuditRecord) -> None:
        """Append a record and notify subscribers."""
        with self._lock:
            self._records.append(entry)
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(entry)
            except Exception as e:
                logger.error(f"Audit subscriber error: {e}")

    def query(
        self,
        user_id: Optional[str] = None,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        granted: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> List[AuditRecord]:
        """
        Get matching records, newest first.

        Args:
            user_id: Only records for this user
            resource: Only records for this resource
            action: Only records for this action
            start: Earliest timestamp (inclusive)
            end: Latest timestamp (inclusive)
            granted: Only grants (True) or denials (False)
            limit: Maximum number of records returned
        """
        with self._lock:
            snapshot = list(self._records)

        result = []
        for entry in reversed(snapshot):
            if user_id is not None and entry.user_id != user_id:
                continue
            if resource is not None and entry.resource != resource:
                continue
            if action is not None and entry.action != action:
                continue
            if start is not None and entry.timestamp < start:
                continue
            if end is not None and entry.timestamp > end:
                continue
            if granted is not None and entry.granted != granted:
                continue
            result.append(entry)
            if limit is not None and len(result) >= limit:
                break

        return result

    def subscribe(self, listener: AuditListener) -> Callable[[], None]:
        """
        Receive every new record.

        Returns:
            Unsubscribe function
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
