"""Diary domain: models, diary-day rules, stats and the editing session."""
