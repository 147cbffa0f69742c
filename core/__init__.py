"""Core models, scheduling and logging for the simulator."""
