"""
Centralized application constants.

This file acts as the single point of truth for business logic constants
shared across the order, project and status services.
"""

from zoneinfo import ZoneInfo

# ==============================================================================
# STATUS PIPELINE
# ==============================================================================

# The four independent tracks, in dashboard column order
STATUS_TRACKS = ["ORDER", "PICKUP", "DELIVERY", "CHECK"]

# Label shown for a track that has never been posted to
STATUS_NOT_SET = "未設定"

# Value every track starts with when an order is confirmed
TRACK_SEED_VALUE = "PENDING"

# ORDER track: only this primary value combines with the secondary value
ORDER_PRIMARY_COMBINED = "Ordered"

# DELIVERY track: only this status carries delivery details
DELIVERY_DELIVERED = "Delivered"
DELIVERY_DETAIL_FIELDS = ["time", "address", "po", "deliveredBy"]

# Maximum length of a stored status value
STATUS_VALUE_MAX_LENGTH = 100

# Window used by the "recent updates" statistic
RECENT_UPDATES_HOURS = 24

# ==============================================================================
# NAMING
# ==============================================================================

# Category labels used in auto-generated project names
PROJECT_CATEGORY_LABELS = {
    "AUXILIARY": "輔材",
    "FINISHED": "完成材",
}

# Default order names when the caller supplies none
ORDER_NAME_PREFIXES = {
    "AUXILIARY": "輔材訂單",
    "FINISHED": "完成材訂單",
}

# Order statuses from which an order may still be cancelled
CANCELLABLE_ORDER_STATUSES = ["PENDING", "CONFIRMED"]

# ==============================================================================
# ROLES
# ==============================================================================

# Roles allowed to create each order type
ORDER_CREATOR_ROLES = {
    "AUXILIARY": ["PM", "ADMIN"],
    "FINISHED": ["AM", "ADMIN"],
}

# Roles allowed to list each order type (PM/AM see only their own)
ORDER_LIST_ROLES = {
    "AUXILIARY": ["PM", "WAREHOUSE", "ADMIN"],
    "FINISHED": ["AM", "WAREHOUSE", "ADMIN"],
}

# Role whose own order type is implied when none is given
ROLE_ORDER_TYPES = {
    "PM": "AUXILIARY",
    "AM": "FINISHED",
}

# Roles allowed to post to any status track
STATUS_UPDATER_ROLES = ["WAREHOUSE", "PM", "ADMIN"]

# Roles that see every order (others only see their own)
ORDER_VIEW_ALL_ROLES = ["ADMIN", "WAREHOUSE"]

# Roles allowed to change order status and links on any order
ORDER_MANAGER_ROLES = ["ADMIN", "WAREHOUSE"]

# Roles that may confirm or cancel another user's order
ORDER_OVERRIDE_ROLES = ["ADMIN"]

# Roles allowed to post raw values to a project's tracks by project id
PROJECT_STATUS_ROLES = ["WAREHOUSE", "ADMIN"]

# Roles allowed to rename projects
PROJECT_EDITOR_ROLES = ["PM", "AM", "ADMIN"]

# Roles allowed to view statistics and the raw status feed
STATUS_AUDIT_ROLES = ["ADMIN", "WAREHOUSE"]

# Roles allowed to create, edit and delete catalog materials
CATALOG_MANAGER_ROLES = ["ADMIN"]

# Roles allowed to adjust stock quantities
STOCK_MANAGER_ROLES = ["WAREHOUSE", "ADMIN"]

# Roles allowed to delete orders and materials
DELETE_ROLES = ["ADMIN"]

# ==============================================================================
# PAGINATION / REGIONAL
# ==============================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Display timezone (Taiwan Standard Time, UTC+8)
DISPLAY_TZ = ZoneInfo("Asia/Taipei")
