"""
Audit Trail Module

Hash-chained, append-only, in-memory audit log with SHA-256 for tamper
detection. Every successful ledger mutation is logged here. Nothing is
written to disk.
"""

import hashlib
import json
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class AuditEventType(Enum):
    """Types of audit events"""
    ACCOUNT_CREATED = "account_created"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    INTEREST_APPLIED = "interest_applied"


def _convert_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, dict):
        return {k: _convert_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_convert_value(v) for v in value]
    return value


@dataclass
class AuditEvent:
    """
    Audit event with hash chaining for tamper detection
    """
    event_type: AuditEventType
    account_id: int
    previous_hash: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    current_hash: str = ""

    def __post_init__(self):
        # Ensure metadata is JSON serializable
        self.metadata = {k: _convert_value(v) for k, v in self.metadata.items()}

    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this event
        Hash includes all fields except current_hash to prevent circular reference
        """
        hash_data = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'account_id': self.account_id,
            'previous_hash': self.previous_hash,
            'metadata': self.metadata
        }

        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'account_id': self.account_id,
            'previous_hash': self.previous_hash,
            'current_hash': self.current_hash,
            'metadata': self.metadata
        }


class AuditTrail:
    """
    Hash-chained audit trail kept in memory for the life of the process
    """

    def __init__(self):
        self._events: List[AuditEvent] = []
        self._last_hash = ""
        self._lock = threading.Lock()

    def log_event(
        self,
        event_type: AuditEventType,
        account_id: int,
        metadata: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """
        Log an audit event with hash chaining

        Args:
            event_type: Type of audit event
            account_id: Account the event concerns
            metadata: Additional event-specific data

        Returns:
            Created AuditEvent
        """
        with self._lock:
            event = AuditEvent(
                event_type=event_type,
                account_id=account_id,
                previous_hash=self._last_hash,
                metadata=metadata or {}
            )
            event.current_hash = event.calculate_hash()
            self._events.append(event)
            self._last_hash = event.current_hash
            return event

    def get_events_for_account(self, account_id: int, limit: Optional[int] = None) -> List[AuditEvent]:
        """Events touching an account, oldest first; transfers match either side"""
        with self._lock:
            events = [
                e for e in self._events
                if e.account_id == account_id or e.metadata.get('destination_id') == account_id
            ]
        if limit:
            events = events[-limit:]
        return events

    def get_all_events(self, event_type: Optional[AuditEventType] = None) -> List[AuditEvent]:
        with self._lock:
            events = list(self._events)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events

    def count_events(self) -> int:
        with self._lock:
            return len(self._events)

    def get_latest_hash(self) -> str:
        with self._lock:
            return self._last_hash

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire audit chain

        Returns:
            Dictionary with integrity check results
        """
        with self._lock:
            events = list(self._events)

        result = {
            'valid': True,
            'total_events': len(events),
            'hash_errors': [],
            'chain_breaks': []
        }

        previous_hash = ""
        for i, event in enumerate(events):
            if not event.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'event_id': event.id,
                    'position': i,
                    'expected_hash': event.calculate_hash(),
                    'actual_hash': event.current_hash
                })
            if event.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'event_id': event.id,
                    'position': i,
                    'expected_previous_hash': previous_hash,
                    'actual_previous_hash': event.previous_hash
                })
            previous_hash = event.current_hash

        return result
