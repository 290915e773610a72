# Import models here so Alembic can discover metadata.
from brandbite.models.user import UserAccount  # noqa: F401
from brandbite.models.plan import Plan  # noqa: F401
from brandbite.models.company import Company, CompanyMember  # noqa: F401
from brandbite.models.project import Project  # noqa: F401
from brandbite.models.job_type import JobType, JobTypeCategory  # noqa: F401

# Board
from brandbite.models.ticket import Ticket, TicketComment, TicketRevision  # noqa: F401

# Tokens
from brandbite.models.ledger_entry import LedgerEntry  # noqa: F401
from brandbite.models.withdrawal import Withdrawal  # noqa: F401
from brandbite.models.payout_tier import PayoutTier  # noqa: F401
from brandbite.models.app_setting import AppSetting  # noqa: F401
