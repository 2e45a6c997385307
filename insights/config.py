"""Configuration constants for the aggregation and reporting pipeline."""
from __future__ import annotations

import os

# Label used when a row carries no type tag
FALLBACK_TYPE_LABEL: str = os.getenv("INSIGHTS_FALLBACK_TYPE", "Mensagem Normal")

# Separator used when joining a session's human comments
COMMENT_SEPARATOR: str = os.getenv("INSIGHTS_COMMENT_SEPARATOR", " - ")

# Two ranking scores closer than this are treated as equal
TIE_EPSILON: float = float(os.getenv("INSIGHTS_TIE_EPSILON", "0.001"))

# Number of users listed in the "load by user" table
TOP_USERS: int = int(os.getenv("INSIGHTS_TOP_USERS", "5"))

# Default page size for the pagination helper
PAGE_SIZE: int = int(os.getenv("INSIGHTS_PAGE_SIZE", "10"))

# Timezone used for hourly / daily volume buckets
DISPLAY_TIMEZONE: str = os.getenv("INSIGHTS_DISPLAY_TIMEZONE", "UTC")

# Maximum comments rendered verbatim in a report
MAX_COMMENTS: int = int(os.getenv("REPORT_MAX_COMMENTS", "50"))

# Maximum rows of the type distribution rendered in a report
MAX_TYPES: int = int(os.getenv("REPORT_MAX_TYPES", "7"))

# Maximum entries rendered per score ranking in a report
MAX_RANKING: int = int(os.getenv("REPORT_MAX_RANKING", "10"))

# Score thresholds on the 0-10 scale. Fixed business rule, not env-driven.
PROMOTER_MIN_SCORE: float = 9
NEUTRAL_MIN_SCORE: float = 7
