"""Multi-day road trip planner."""
