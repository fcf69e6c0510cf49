"""TriGoal Diary: daily diary, bedtime log and three-tier goal tracker."""

__version__ = "1.0.0"
