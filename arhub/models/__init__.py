"""Database models — re-exports all models.

Import from here:  from arhub.models import Analyst, Briefing, ...
Or from submodules: from arhub.models.analysts import InfluenceTier
"""

from .base import Base  # noqa: F401

# Analysts & Influence Tiers
from .analysts import ANALYST_STATUSES, INFLUENCE_LEVELS, Analyst, InfluenceTier  # noqa: F401

# Briefings
from .briefings import (  # noqa: F401
    BRIEFING_STATUSES,
    PENDING_BRIEFING_STATUSES,
    Briefing,
    BriefingAnalyst,
)

# Scheduling outreach
from .scheduling import (  # noqa: F401
    CONVERSATION_STATUSES,
    OPEN_CONVERSATION_STATUSES,
    SchedulingConversation,
)
