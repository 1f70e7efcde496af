from enum import Enum
from typing import Any


class DeletePolicy(str, Enum):
    """What ``DELETE`` means for an entity type."""

    SOFT_DEACTIVATE = "soft-deactivate"
    SOFT_CANCEL = "soft-cancel"
    HARD_DELETE = "hard-delete"


def delete_policy_of(instance: Any) -> DeletePolicy:
    policy = getattr(type(instance), "__delete_policy__", None)
    if policy is None:
        raise TypeError(f"{type(instance).__name__} declares no __delete_policy__")
    return policy


def apply_soft_delete(instance: Any) -> bool:
    """
    Mutate ``instance`` according to its soft delete policy.

    Returns:
        bool: False when the policy is HARD_DELETE and the row must be removed
    """
    policy = delete_policy_of(instance)
    if policy is DeletePolicy.SOFT_DEACTIVATE:
        instance.is_active = False
        return True
    if policy is DeletePolicy.SOFT_CANCEL:
        instance.status = type(instance).__cancelled_status__
        return True
    return False
