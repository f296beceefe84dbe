"""Service layer: discovery, parsing, status inference and the poll loop."""

from session_monitor.services.conversation import SessionConversationService, extract_messages
from session_monitor.services.discovery import SessionDiscoveryService, validate_session_id
from session_monitor.services.info import SessionInfoService
from session_monitor.services.parser import SessionLogParser
from session_monitor.services.permissions import PermissionPolicy
from session_monitor.services.polling import SessionMonitor, Subscription
from session_monitor.services.status import StatusInference

__all__ = [
    'PermissionPolicy',
    'SessionConversationService',
    'SessionDiscoveryService',
    'SessionInfoService',
    'SessionLogParser',
    'SessionMonitor',
    'StatusInference',
    'Subscription',
    'extract_messages',
    'validate_session_id',
]
