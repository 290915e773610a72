from __future__ import annotations

import uuid

import pytest

from brandbite.core.pricing import creative_payout_for_cost, price_job_type, scaled_payout, token_cost_for_hours
from brandbite.core.ticket_code import build_ticket_code


def test_job_type_price_follows_hours():
    assert price_job_type(10) == (10, 6)
    assert price_job_type(1) == (1, 1)  # 0.6 rounds half up
    assert price_job_type(5) == (5, 3)


def test_hours_must_be_positive():
    with pytest.raises(ValueError):
        token_cost_for_hours(0)


def test_payout_rounds_half_up():
    assert creative_payout_for_cost(25) == 15
    assert creative_payout_for_cost(3, percent=50) == 2


def test_scaled_payout_keeps_base_at_base_percent():
    assert scaled_payout(6, 60) == 6
    assert scaled_payout(6, 70) == 7
    assert scaled_payout(12, 80) == 16
    assert scaled_payout(0, 80) == 0


def test_ticket_code_prefers_project_code():
    tid = uuid.uuid4()
    assert build_ticket_code(ticket_id=tid, company_ticket_number=101, project_code="WEB") == "WEB-101"
    assert build_ticket_code(ticket_id=tid, company_ticket_number=101, project_code="  ") == "#101"
    assert build_ticket_code(ticket_id=tid, company_ticket_number=None) == str(tid)
