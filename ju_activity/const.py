DOMAIN = "ju_activity"
VERSION = "0.3.0"

DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_STORAGE_DIR = "~/.ju_activity"
STORAGE_FILENAME = "session.json"
STORAGE_VERSION = 1

# Path handed to the navigation callback after logout
ENTRY_PATH = "/"

# Roles
ROLE_STUDENT = "student"
ROLE_COORDINATOR = "coordinator"
ROLE_ADMIN = "admin"

# Roles allowed to create activities
ACTIVITY_MANAGER_ROLES = (ROLE_ADMIN, ROLE_COORDINATOR)

# Session states
AUTH_ANONYMOUS = "anonymous"
AUTH_AUTHENTICATED = "authenticated"

# User status
USER_ACTIVE = "active"
USER_INACTIVE = "inactive"

# Application status
APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "approved"
APPLICATION_REJECTED = "rejected"

# Attendance status
ATTENDANCE_PRESENT = "present"
ATTENDANCE_ABSENT = "absent"

# Fields a user may change on their own profile
PROFILE_FIELDS = ("name", "email", "department", "student_id")

# Application patch keys accepted by update_application()
APPLICATION_PATCH_FIELDS = frozenset({"status", "notes"})

# Name used when no application carries the student's name
UNKNOWN_STUDENT_NAME = "Unknown"

# Update intervals (seconds)
NOTIFICATIONS_INTERVAL = 15  # background notification polling

# HTTP status codes meaning "the stored token is no longer accepted"
REJECTED_TOKEN_STATUSES = (401, 403)
