"""Resource APIs exposed by the gateway client."""
from .activities import ActivitiesApi
from .applications import ApplicationsApi
from .attendance import AttendanceApi
from .audit_logs import AuditLogsApi
from .auth import AuthApi
from .notifications import NotificationsApi
from .users import UsersApi

__all__ = [
    "ActivitiesApi",
    "ApplicationsApi",
    "AttendanceApi",
    "AuditLogsApi",
    "AuthApi",
    "NotificationsApi",
    "UsersApi",
]
