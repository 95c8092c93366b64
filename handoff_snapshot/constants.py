"""Constants and enumerations for the shift handoff snapshot."""

from enum import StrEnum
from typing import Final


# API Configuration
PYLON_API_BASE_URL: Final[str] = "https://api.usepylon.com"
API_ISSUE_SEARCH_ENDPOINT: Final[str] = "/issues/search"
API_USERS_ENDPOINT: Final[str] = "/users"
PYLON_ISSUE_URL_TEMPLATE: Final[str] = (
    "https://app.usepylon.com/issues?conversationID={}"
)

SLACK_API_BASE_URL: Final[str] = "https://slack.com/api"
SLACK_POST_MESSAGE_ENDPOINT: Final[str] = "/chat.postMessage"
DEFAULT_SLACK_CHANNEL: Final[str] = "#csorg-support-handoff"

# Saved views linked from the report headings
VIEW_HANDOFF_ISSUES: Final[str] = (
    "https://app.usepylon.com/issues/views/e799d418-120d-4849-bf81-37d5afdba15c"
)
VIEW_SLA_PENDING_HIGH: Final[str] = (
    "https://app.usepylon.com/issues/views/039f2559-c7ca-4550-929e-31dc881351d3"
)
VIEW_SLA_PENDING_LOW: Final[str] = (
    "https://app.usepylon.com/issues/views/70565321-570f-4dfe-856a-c767e4042511"
)
VIEW_COMMUNITY_OPEN: Final[str] = (
    "https://app.usepylon.com/issues/views/f22611f4-c563-483a-bc36-b7d7d7014df6"
)

# Default Values
DEFAULT_TIMEZONE: Final[str] = "America/Los_Angeles"
DEFAULT_PAGE_SIZE: Final[int] = 200
DEFAULT_MAX_PAGES_WINDOW_SCAN: Final[int] = 500
DEFAULT_MAX_PAGES_QUEUE_SCAN: Final[int] = 1000
DEFAULT_INTER_PAGE_DELAY: Final[float] = 0.2
DEFAULT_MAX_ATTEMPTS: Final[int] = 8
DEFAULT_BACKOFF_BASE: Final[float] = 0.75
DEFAULT_BACKOFF_CAP: Final[float] = 30.0
DEFAULT_LOOKBACK_DAYS: Final[int] = 30
DEFAULT_AGED_DAYS: Final[int] = 7
DEFAULT_HTTP_TIMEOUT: Final[float] = 30.0

TARGET_TEAM_ID: Final[str] = "0363526b-d360-424a-9306-869bf7c2be4f"

# Custom field slugs
CF_PRIORITY: Final[str] = "priority"
CF_HANDOFF_REGION: Final[str] = "hand_off_region"
CF_MEETING_REQUIRED: Final[str] = "handoff_call_required"

# Display values
UNASSIGNED: Final[str] = "Unassigned"
NO_SUBJECT: Final[str] = "(No subject)"
UNKNOWN_HANDOFF_LABEL: Final[str] = "Unknown"
OTHER_SOURCES_LABEL: Final[str] = "Pylon"
REPORT_DATE_FORMAT: Final[str] = "%m/%d/%Y"

# Numeric Constants
EXIT_CODE_ERROR: Final[int] = 1
FIRST_PAGE: Final[int] = 1
UNKNOWN_TIER_RANK: Final[int] = 99


class Region(StrEnum):
    """Support shifts that hand off to each other."""

    APAC = "apac"
    EMEA = "emea"
    US = "us"


class TicketState(StrEnum):
    """Issue states reported by the ticketing API."""

    NEW = "new"
    WAITING_ON_YOU = "waiting_on_you"
    WAITING_ON_CUSTOMER = "waiting_on_customer"
    ON_HOLD = "on_hold"
    CLOSED = "closed"


class TicketSource(StrEnum):
    """Known issue origins."""

    DISCORD = "discord"
    SLACK = "slack"
    EMAIL = "email"


class SeverityTier(StrEnum):
    """Internal severity tiers, P0 being the most urgent."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    UNKNOWN = "P?"


class Bucket(StrEnum):
    """Report buckets a ticket can be classified into."""

    NEW_IN_WINDOW = "new_in_window"
    SLA_PENDING_HIGH = "sla_pending_high"
    SLA_PENDING_LOW = "sla_pending_low"
    AGED = "aged"
    HANDOFF = "handoff"
    COMMUNITY_OPEN = "community_open"


class ScanName(StrEnum):
    """Labels used in progress logging for the two scans."""

    WINDOW = "SCAN-A"
    QUEUE = "SCAN-B"


class ApiResponseKey(StrEnum):
    """API response dictionary keys."""

    ID = "id"
    NUMBER = "number"
    TITLE = "title"
    STATE = "state"
    SOURCE = "source"
    CREATED_AT = "created_at"
    TEAM = "team"
    ASSIGNEE = "assignee"
    CUSTOM_FIELDS = "custom_fields"
    VALUE = "value"


class ApiRequestKey(StrEnum):
    """API request payload keys."""

    LIMIT = "limit"
    CURSOR = "cursor"


class EnvVar(StrEnum):
    """Environment variables read at startup."""

    PYLON_TOKEN = "PYLON_TOKEN"
    SLACK_BOT_TOKEN = "SLACK_BOT_TOKEN"
    SLACK_CHANNEL = "SLACK_CHANNEL"
    LOOKBACK_DAYS = "SCAN_B_LOOKBACK_DAYS"


class LogMessage(StrEnum):
    """Log message templates."""

    PAGE_FETCHED = "[{}] page={} fetched={} {}"
    EARLY_STOP = "[{}] early-stop: oldest={} < cutoff={}"
    CURSOR_REPEATED = "[{}] cursor repeated; stopping to avoid infinite paging"
    MAX_PAGES_REACHED = "[{}] hit max pages={}; stopping"
    ORDERING_VIOLATION = (
        "[{}] page={} newest={} is newer than previous page oldest={}; "
        "upstream is not returning issues newest-first, early stop may undercount"
    )
    RATE_LIMITED = "Rate limited on attempt {}; retrying in {:.2f}s"
    SCAN_COMPLETE = "[{}] complete after {} pages ({} issues seen)"
    USERS_LOADED = "Loaded {} users for assignee name resolution"
    USERS_UNAVAILABLE = "Could not load users; assignees will show as IDs. Reason: {}"
    WINDOW = "{} shift window: {} -> {} (UTC)"
    REPORT_POSTED = "Posted handoff snapshot for {} to {}"
    ERROR_OCCURRED = "Error occurred: {}"
    SNAPSHOT_SUMMARY = "Snapshot {}: new={} {}"
    SLACK_ACCEPTED = "Slack accepted message for {}"


class CliHelp(StrEnum):
    """CLI help messages."""

    APP = "Shift handoff snapshot for the support queue"
    REGION = "Shift that is handing off: apac, emea or us."
    DRY_RUN = "Render the report to the terminal instead of posting it to Slack."
    LOOKBACK_DAYS = "Stop the queue scan once issues are older than this many days."
    CHANNEL = "Slack channel that receives the report."
    VERBOSE = "Enable debug logging."


class StopReason(StrEnum):
    """Why a paginated scan stopped."""

    NO_NEXT_PAGE = "no_next_page"
    EARLY_STOP = "early_stop"
    CURSOR_REPEATED = "cursor_repeated"
    MAX_PAGES = "max_pages"
