# brandbite/core/enums.py

import enum


class TicketStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"


class TicketPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class LedgerDirection(str, enum.Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class LedgerOwnerType(str, enum.Enum):
    COMPANY = "COMPANY"
    USER = "USER"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class LedgerReason(str, enum.Enum):
    PLAN_PURCHASE = "PLAN_PURCHASE"
    PLAN_RENEWAL = "PLAN_RENEWAL"
    JOB_REQUEST_CREATED = "JOB_REQUEST_CREATED"
    TICKET_COMPLETED_PAYOUT = "TICKET_COMPLETED_PAYOUT"
    WITHDRAWAL_PAID = "WITHDRAWAL_PAID"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"
    REFUND = "REFUND"


STATUS_ORDER = (
    TicketStatus.TODO,
    TicketStatus.IN_PROGRESS,
    TicketStatus.IN_REVIEW,
    TicketStatus.DONE,
)
