"""Event name constants.

Learn: Centralizing event names as constants prevents typos and
makes it easy to discover everything the realtime channel can carry.
The dashboard client listens for these exact names.
"""

# ─── Socket events ───────────────────────────────────────

PROCESS_UPDATE = "process-update"
DASHBOARD_UPDATE = "dashboard-update"

# ─── process-update types ────────────────────────────────

UPDATE_RETRY = "retry"
UPDATE_STATUS_CHANGE = "status-change"

# ─── Rooms ───────────────────────────────────────────────

DASHBOARD_ROOM = "dashboard"
