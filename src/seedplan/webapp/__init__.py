"""HTTP API for the structure planner."""
