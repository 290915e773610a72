from __future__ import annotations

import pytest

from brandbite.core.board import ActorKind, BoardActor, is_transition_allowed, next_allowed_states
from brandbite.core.enums import TicketStatus
from brandbite.core.roles import CompanyRole

TODO = TicketStatus.TODO
IN_PROGRESS = TicketStatus.IN_PROGRESS
IN_REVIEW = TicketStatus.IN_REVIEW
DONE = TicketStatus.DONE

CREATIVE = BoardActor(kind=ActorKind.CREATIVE)
ADMIN = BoardActor(kind=ActorKind.ADMIN)


def customer(role: CompanyRole) -> BoardActor:
    return BoardActor(kind=ActorKind.CUSTOMER, company_role=role)


def test_creative_moves_forward_and_back_from_review():
    assert next_allowed_states(CREATIVE, TODO) == {IN_PROGRESS}
    assert next_allowed_states(CREATIVE, IN_PROGRESS) == {IN_REVIEW}
    assert next_allowed_states(CREATIVE, IN_REVIEW) == {IN_PROGRESS}


@pytest.mark.parametrize("current", [TODO, IN_PROGRESS, IN_REVIEW, DONE])
def test_creative_never_enters_or_leaves_done(current):
    assert DONE not in next_allowed_states(CREATIVE, current)
    if current == DONE:
        assert next_allowed_states(CREATIVE, DONE) == frozenset()


def test_owner_and_pm_can_approve_or_request_changes():
    for role in (CompanyRole.OWNER, CompanyRole.PM):
        assert next_allowed_states(customer(role), IN_REVIEW) == {DONE, IN_PROGRESS}


def test_member_can_only_request_changes():
    assert next_allowed_states(customer(CompanyRole.MEMBER), IN_REVIEW) == {IN_PROGRESS}


def test_billing_cannot_move_tickets():
    for current in TicketStatus:
        assert next_allowed_states(customer(CompanyRole.BILLING), current) == frozenset()


@pytest.mark.parametrize("current", [TODO, IN_PROGRESS, DONE])
def test_customers_only_act_on_review(current):
    assert next_allowed_states(customer(CompanyRole.OWNER), current) == frozenset()


def test_admin_can_override_to_any_other_status():
    for current in TicketStatus:
        assert next_allowed_states(ADMIN, current) == set(TicketStatus) - {current}


def test_same_status_is_always_allowed():
    assert is_transition_allowed(customer(CompanyRole.BILLING), DONE, DONE)
    assert is_transition_allowed(CREATIVE, TODO, "TODO")
    assert not is_transition_allowed(CREATIVE, TODO, DONE)
