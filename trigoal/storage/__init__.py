"""Persistence of goals, entries and the sleep session."""
