"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LIST_LIMIT = 200
DEFAULT_AUDIT_LIST_LIMIT = 500

DEFAULT_AUDIT_RETRY_ATTEMPTS = 3
DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS = 0.2

TICKET_NUMBER_PREFIX = "TKT"
TICKET_NUMBER_ATTEMPTS = 3

MIN_SATISFACTION_RATING = 1
MAX_SATISFACTION_RATING = 5

# Fields an employee may change on their own record.
EMPLOYEE_SELF_SERVICE_FIELDS = frozenset({"phone", "address"})

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_EXTENSIONS = frozenset({"pdf", "png", "jpg", "jpeg", "doc", "docx"})

# Upper bound on employees scanned by org-wide progress reports.
ORG_REPORT_EMPLOYEE_LIMIT = 10_000
