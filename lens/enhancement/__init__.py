"""Enhancement job tracking for notebook-lens."""

from lens.enhancement.files import enhancement_state, is_tabular, map_files
from lens.enhancement.poller import JobPoller, StaleTracker
from lens.enhancement.status import parse_status

__all__ = [
    "JobPoller",
    "StaleTracker",
    "parse_status",
    "map_files",
    "is_tabular",
    "enhancement_state",
]
