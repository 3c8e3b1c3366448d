"""
Per-user restore policies.

- models: UserProfilePolicy and its strict JSON parsing
- store: PolicyStore, one JSON record per user
- evaluator: decide() - skip / full restore / partial clean
"""

from .models import UserProfilePolicy
from .store import PolicyStore
from .evaluator import Action, decide, days_until_due

__all__ = [
    'UserProfilePolicy',
    'PolicyStore',
    'Action',
    'decide',
    'days_until_due',
]
