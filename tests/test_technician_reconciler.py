import pytest

from techsync.models.technician import LocalAccount, MatchMethod, RemoteTechnician
from techsync.services.technician_reconciler import (
    TechnicianReconciler,
    find_best_match,
    reconcile_technicians,
    score_match,
)


def tech(id: str, name: str, email: str) -> RemoteTechnician:
    return RemoteTechnician(id=id, name=name, email=email)


def test_reconcile_with_no_technicians_returns_no_match_for_every_account():
    accounts = [
        LocalAccount(id="a", email="a@x.com", full_name="Alpha"),
        LocalAccount(id="b", email="b@x.com"),
    ]

    results = reconcile_technicians(accounts, [])

    assert len(results) == 2
    assert [r.account.id for r in results] == ["a", "b"]
    for result in results:
        assert result.match_method is MatchMethod.NONE
        assert result.confidence == 0.0
        assert result.needs_manual_review is True
        assert result.technician_id is None
        assert result.technician is None
        assert result.reasons == ["No matching technician found in the remote directory"]


def test_reconcile_with_no_accounts_returns_empty(roster):
    assert reconcile_technicians([], roster) == []


def test_email_comparison_is_case_insensitive():
    account = LocalAccount(id="a", email="A@B.com")
    technician = tech("7", "Someone", "a@b.com")

    assert score_match(account, technician) >= 0.8
    [result] = reconcile_technicians([account], [technician])
    assert result.match_method is MatchMethod.EMAIL
    assert result.reasons == ["Email exact match"]


def test_name_containment_alone_is_below_threshold():
    account = LocalAccount(id="a", email="x@y.com", full_name="Bob")
    technicians = [tech("9", "Bob Jones", "other@z.com")]

    assert score_match(account, technicians[0]) == pytest.approx(0.4)
    [result] = reconcile_technicians([account], technicians)
    assert result.match_method is MatchMethod.NONE
    assert result.confidence == 0.0
    assert result.technician_id is None


def test_exact_email_and_name_saturates_at_one(jane, roster):
    [result] = reconcile_technicians([jane], roster)

    assert result.technician_id == "1"
    assert result.technician is roster[0]
    assert result.technician_name == "Jane Doe"
    assert result.confidence == 1.0
    assert result.match_method is MatchMethod.EMAIL
    assert result.needs_manual_review is False


def test_email_only_match_needs_review():
    account = LocalAccount(id="a", email="pat@co.com")
    [result] = reconcile_technicians([account], [tech("3", "Patricia Q", "pat@co.com")])

    assert result.confidence == pytest.approx(0.8)
    assert result.match_method is MatchMethod.EMAIL
    assert result.needs_manual_review is True


def test_email_plus_partial_name_clears_review_threshold():
    account = LocalAccount(id="a", email="pat@co.com", full_name="Pat")
    [result] = reconcile_technicians([account], [tech("3", "Pat Quinn", "PAT@co.com")])

    assert result.confidence == 1.0
    assert result.needs_manual_review is False


def test_exact_name_without_email_is_name_match_needing_review():
    account = LocalAccount(id="a", email="maria@personal.com", full_name="Maria Garcia")
    [result] = reconcile_technicians([account], [tech("2", "maria garcia", "maria.garcia@example.com")])

    assert result.confidence == pytest.approx(0.6)
    assert result.match_method is MatchMethod.NAME
    assert result.reasons == ["Name similarity match"]
    assert result.needs_manual_review is True


def test_tie_break_prefers_first_technician():
    account = LocalAccount(id="a", email="dup@co.com")
    technicians = [tech("first", "A", "dup@co.com"), tech("second", "B", "DUP@co.com")]

    best, score = find_best_match(account, technicians)
    assert best is technicians[0]
    assert score == pytest.approx(0.8)

    [result] = reconcile_technicians([account], list(reversed(technicians)))
    assert result.technician_id == "second"


def test_higher_score_later_in_list_wins():
    account = LocalAccount(id="a", email="dup@co.com", full_name="Dana Lee")
    technicians = [tech("1", "Someone", "dup@co.com"), tech("2", "Dana Lee", "dup@co.com")]

    [result] = reconcile_technicians([account], technicians)
    assert result.technician_id == "2"
    assert result.confidence == 1.0


def test_name_is_ignored_when_account_has_no_full_name():
    account = LocalAccount(id="a", email="none@co.com")
    assert score_match(account, tech("1", "", "other@co.com")) == 0.0


def test_empty_full_name_is_contained_in_any_name():
    account = LocalAccount(id="a", email="x@co.com", full_name="")
    assert score_match(account, tech("1", "Anyone", "y@co.com")) == pytest.approx(0.4)


def test_phone_number_does_not_contribute_to_score():
    account = LocalAccount(id="a", email="x@co.com")
    technician = RemoteTechnician(id="1", name="Tech", email="y@co.com", phone="555-123-4567")
    assert score_match(account, technician) == 0.0


def test_two_accounts_may_match_same_technician(roster):
    accounts = [
        LocalAccount(id="a", email="jane@co.com"),
        LocalAccount(id="b", email="jane@co.com", full_name="Jane"),
    ]

    results = reconcile_technicians(accounts, roster)
    assert [r.technician_id for r in results] == ["1", "1"]


def test_output_order_follows_account_order(roster):
    accounts = [
        LocalAccount(id="z", email="john@co.com", full_name="John Smith"),
        LocalAccount(id="y", email="nobody@co.com"),
        LocalAccount(id="x", email="jane@co.com", full_name="Jane Doe"),
    ]

    results = TechnicianReconciler().reconcile(accounts, roster)
    assert [r.account.id for r in results] == ["z", "y", "x"]
    assert [r.technician_id for r in results] == ["2", None, "1"]
    assert [r.needs_manual_review for r in results] == [False, True, False]


def test_method_and_technician_fields_are_consistent(roster):
    accounts = [
        LocalAccount(id="a", email="jane@co.com"),
        LocalAccount(id="b", email="nobody@co.com", full_name="John"),
        LocalAccount(id="c", email="nobody@co.com", full_name="John Smith"),
    ]

    for result in reconcile_technicians(accounts, roster):
        if result.match_method is MatchMethod.NONE:
            assert result.technician is None and result.confidence == 0.0
        else:
            assert result.technician is not None and 0.5 < result.confidence <= 1.0
        assert result.needs_manual_review == (result.confidence < 0.85)
        assert result.reasons
