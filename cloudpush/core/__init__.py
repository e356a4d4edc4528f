"""Upload orchestration core."""
