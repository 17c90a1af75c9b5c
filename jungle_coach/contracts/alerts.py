"""
Coaching alert contract forwarded to the chat webhook.
"""

from enum import Enum

from .common import BaseContract


class AlertLevel(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    SUCCESS = "success"


class Alert(BaseContract):
    level: AlertLevel
    message: str
    action: str
