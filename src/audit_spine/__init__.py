"""
audit-spine: entity-save validation and audit trail.

Decides whether an entity save is valid by comparing it against the last
recorded audit for the same identity, and records every decision.
"""

__version__ = "0.1.0"

from audit_spine.core import *  # noqa: F401,F403
from audit_spine.validation import *  # noqa: F401,F403
