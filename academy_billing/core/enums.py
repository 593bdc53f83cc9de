from enum import Enum


class CourseType(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CalculationType(str, Enum):
    FIRST_MONTH = "first_month"
    REGULAR_MONTH = "regular_month"


class BillingOutcome(str, Enum):
    BILLED = "billed"
    ALREADY_BILLED = "already_billed"
    NOT_DUE = "not_due"
    UNBILLABLE = "unbillable"
    FAILED = "failed"


class WalletTransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"
