"""
Event Logger Module

Audit trail for one-time password activity.

Features:
- Secret creation, token generation and verification events
- Enrollment URL / QR issuance events
- Privacy-preserving user hashes (SHA-256 of the label)
- Bounded in-memory trail plus forwarding to the `logging` module

Never records secret material, codes or sealed blobs.
"""

import hashlib
import json
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

DEFAULT_MAX_EVENTS = 1000
EVENT_VERSION = "1.0"


# ============================================================================
# Privacy Functions
# ============================================================================

def get_user_hash(label: str) -> str:
    """
    Compute privacy-preserving hash of an account label.

    Labels are usually email addresses; hashing keeps them out of the audit
    trail while still allowing correlation of events for the same account.

    Args:
        label: The plaintext label

    Returns:
        Hex-encoded SHA-256 hash of the label
    """
    return hashlib.sha256(label.encode('utf-8')).hexdigest()


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of OTP events that can be logged."""

    SECRET_CREATED = "secret_created"
    TOKEN_GENERATED = "token_generated"
    TOKEN_VERIFIED = "token_verified"
    TOKEN_FAILED = "token_failed"
    ENROLLMENT_ISSUED = "enrollment_issued"


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class SecurityEvent:
    """
    Represents an OTP event to be logged.

    All user-identifying information is hashed for privacy.
    """
    event_type: EventType
    user_hash: str  # SHA-256 hash of the label
    timestamp: int  # Unix timestamp
    details: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize event as compact JSON."""
        return json.dumps({
            'version': EVENT_VERSION,
            'type': self.event_type.value,
            'user': self.user_hash[:16],  # Short hash for readability
            'time': self.timestamp,
            'iso_time': datetime.fromtimestamp(self.timestamp).isoformat(),
            'details': self.details,
        }, separators=(',', ':'))

    @classmethod
    def from_json(cls, raw: str) -> 'SecurityEvent':
        """Parse event from its JSON form."""
        data = json.loads(raw)
        return cls(
            event_type=EventType(data['type']),
            user_hash=data['user'],
            timestamp=data['time'],
            details=data.get('details', {}),
        )

    @property
    def is_failure(self) -> bool:
        return self.event_type is EventType.TOKEN_FAILED

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp)
        return (
            f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] "
            f"{self.event_type.value} | "
            f"user:{self.user_hash[:8]}..."
        )


# ============================================================================
# Event Logger
# ============================================================================

class EventLogger:
    """
    Audit logger for OTP activity.

    Keeps the most recent events in memory, notifies callbacks and forwards
    every event to the standard logging module. Safe to share between
    threads.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS,
                 log: Optional[logging.Logger] = None):
        """
        Initialize the event logger.

        Args:
            max_events: Number of events kept in memory (oldest dropped)
            log: Logger to forward events to (module logger by default)
        """
        self._events: deque = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[SecurityEvent], None]] = []
        self._log = log or logger

    def _add_event(self, event: SecurityEvent) -> SecurityEvent:
        """Record event, forward it and notify callbacks."""
        with self._lock:
            self._events.append(event)
            callbacks = list(self._callbacks)

        level = logging.WARNING if event.is_failure else logging.INFO
        self._log.log(level, "otp event %s", event.to_json())

        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                # Don't let callbacks break logging
                self._log.exception("OTP event callback %r failed", callback)

        return event

    def add_callback(self, callback: Callable[[SecurityEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        with self._lock:
            self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[SecurityEvent], None]) -> None:
        """Remove a callback."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _event(self, event_type: EventType, label: str, **details) -> SecurityEvent:
        return self._add_event(SecurityEvent(
            event_type=event_type,
            user_hash=get_user_hash(label),
            timestamp=int(time.time()),
            details=details,
        ))

    # ========================================================================
    # OTP Events
    # ========================================================================

    def log_secret_created(self, label: str, otp_type: str,
                           algorithm: str, digits: int) -> SecurityEvent:
        """Log creation of a new secret (the key itself is never logged)."""
        return self._event(EventType.SECRET_CREATED, label,
                           otp_type=otp_type, algo=algorithm, digits=digits)

    def log_token_generated(self, label: str, otp_type: str,
                            counter: Optional[int] = None) -> SecurityEvent:
        """Log a token generation; HOTP events include the new counter."""
        details: Dict[str, Any] = {'otp_type': otp_type}
        if counter is not None:
            details['counter'] = counter
        return self._event(EventType.TOKEN_GENERATED, label, **details)

    def log_verification(self, label: str, otp_type: str, success: bool,
                         time_tolerance: int = 0) -> SecurityEvent:
        """Log a verification attempt."""
        return self._event(
            EventType.TOKEN_VERIFIED if success else EventType.TOKEN_FAILED,
            label,
            otp_type=otp_type,
            tolerance=time_tolerance,
        )

    def log_enrollment(self, label: str, otp_type: str, fmt: str = "uri") -> SecurityEvent:
        """Log that enrollment data (URI or QR) was handed out."""
        return self._event(EventType.ENROLLMENT_ISSUED, label,
                           otp_type=otp_type, format=fmt)

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def events(self) -> List[SecurityEvent]:
        """Snapshot of recorded events, oldest first."""
        with self._lock:
            return list(self._events)

    def get_events(self, event_type: Optional[EventType] = None,
                   label: Optional[str] = None) -> List[SecurityEvent]:
        """
        Filter recorded events.

        Args:
            event_type: Only events of this type
            label: Only events for this (plaintext) label

        Returns:
            Matching events, oldest first
        """
        user_hash = get_user_hash(label) if label is not None else None
        return [
            event for event in self.events
            if (event_type is None or event.event_type is event_type)
            and (user_hash is None or event.user_hash == user_hash)
        ]

    def count_failures(self, label: str) -> int:
        """Number of failed verifications recorded for a label."""
        return len(self.get_events(EventType.TOKEN_FAILED, label))

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
