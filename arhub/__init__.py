"""ARHub — analyst relations backend (briefing cadence, outreach scheduling)."""
