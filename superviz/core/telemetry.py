"""
Telemetry and metrics collection
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Metric:
    """Single metric value"""
    name: str
    value: float
    timestamp: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Event:
    """Event record"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


class Telemetry:
    """Telemetry collector, safe for concurrent install runs"""
    
    def __init__(self):
        self._metrics: list[Metric] = []
        self._events: list[Event] = []
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()
    
    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a metric"""
        with self._lock:
            self._metrics.append(Metric(name=name, value=value, tags=tags or {}))
    
    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record an event and bump its counter"""
        with self._lock:
            self._events.append(Event(name=name, metadata=metadata or {}))
            self._counters[name] = self._counters.get(name, 0) + 1
    
    def count(self, name: str) -> int:
        """Number of events recorded under name"""
        with self._lock:
            return self._counters.get(name, 0)
    
    def get_metrics(self) -> list[Metric]:
        with self._lock:
            return self._metrics.copy()
    
    def get_events(self) -> list[Event]:
        with self._lock:
            return self._events.copy()
    
    def clear(self) -> None:
        """Clear all metrics and events"""
        with self._lock:
            self._metrics.clear()
            self._events.clear()
            self._counters.clear()


# Global telemetry instance
_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Get global telemetry instance"""
    return _telemetry
