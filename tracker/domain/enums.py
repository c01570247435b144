from enum import Enum


class MutationType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class PayoutStatus(str, Enum):
    PAID = "paid"
    SKIPPED = "skipped"


class PayoutOutcome(str, Enum):
    PAID = "paid"
    SKIPPED = "skipped"
    ALREADY_PAID = "already_paid"
    NO_REWARD = "no_reward"
