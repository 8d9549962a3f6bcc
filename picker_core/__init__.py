"""
Picker Core Module

Data model and selection policies for the random student picker.

This module provides:
- Pydantic models for students, pick history, groups and the persisted root
- Selection strategies (fair, cycle-limited)
- Injectable uniform random index providers
"""

__version__ = "0.1.0"

from .schemas import (
    CURRENT_VERSION,
    DEFAULT_GROUP_TITLE,
    Group,
    HistoryEntry,
    Root,
    Student,
)
from .selection import (
    POLICIES,
    CycleLimitedSelection,
    FairSelection,
    PickDecision,
    SelectionStrategy,
    make_strategy,
    secure_random_index,
    seeded_index_provider,
)

__all__ = [
    "CURRENT_VERSION",
    "DEFAULT_GROUP_TITLE",
    "Group",
    "HistoryEntry",
    "Root",
    "Student",
    "POLICIES",
    "CycleLimitedSelection",
    "FairSelection",
    "PickDecision",
    "SelectionStrategy",
    "make_strategy",
    "secure_random_index",
    "seeded_index_provider",
]
