from __future__ import annotations

from typing import Optional


def build_ticket_code(
    *,
    ticket_id: object,
    company_ticket_number: Optional[int],
    project_code: Optional[str] = None,
) -> str:
    """
    WEB-101 (project code + number), else #101, else the ticket id.
    """
    code = (project_code or "").strip()
    if code and company_ticket_number is not None:
        return f"{code}-{company_ticket_number}"
    if company_ticket_number is not None:
        return f"#{company_ticket_number}"
    return str(ticket_id)
