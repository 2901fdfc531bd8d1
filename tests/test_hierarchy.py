"""Tests for the code-based account hierarchy."""

from bookkeeper.domain.hierarchy import (
    build_forest,
    flatten_forest,
    parent_code,
    rollup_read_only_balances,
    top_level_total,
)

from conftest import make_account


def test_parent_code():
    assert parent_code("111") == "11"
    assert parent_code("11") == "1"
    assert parent_code("1") is None


def test_build_forest_nests_by_code():
    accounts = [
        make_account(1, code="1"),
        make_account(2, code="11"),
        make_account(3, code="12"),
        make_account(4, code="111"),
    ]
    roots = build_forest(accounts)

    assert [r.code for r in roots] == ["1"]
    assert [c.code for c in roots[0].children] == ["11", "12"]
    assert [c.code for c in roots[0].children[0].children] == ["111"]
    assert roots[0].children[0].children[0].level == 2


def test_orphan_becomes_root():
    accounts = [make_account(1, code="1"), make_account(2, code="111")]
    roots = build_forest(accounts)

    assert [r.code for r in roots] == ["1", "111"]
    assert roots[0].children == []


def test_accounts_without_code_are_left_out():
    roots = build_forest([make_account(1, code=None), make_account(2, code="5")])
    assert [r.code for r in roots] == ["5"]


def test_flatten_forest_is_depth_first():
    accounts = [
        make_account(1, code="1"),
        make_account(2, code="2"),
        make_account(3, code="12"),
        make_account(4, code="11"),
    ]
    order = [node.code for node in flatten_forest(build_forest(accounts))]
    assert order == ["1", "11", "12", "2"]


def test_rollup_sums_direct_children():
    accounts = [
        make_account(1, code="1", is_read_only=True),
        make_account(2, code="11"),
        make_account(3, code="12"),
    ]
    balances = rollup_read_only_balances(accounts, {2: 50, 3: 30})
    assert balances[1] == 80


def test_rollup_resolves_nested_read_only_accounts():
    accounts = [
        make_account(1, code="1", is_read_only=True),
        make_account(2, code="11", is_read_only=True),
        make_account(3, code="111"),
        make_account(4, code="112"),
        make_account(5, code="12"),
    ]
    balances = rollup_read_only_balances(accounts, {3: 10, 4: 20, 5: 5})
    assert balances[2] == 30
    assert balances[1] == 35


def test_rollup_replaces_read_only_own_balance():
    accounts = [
        make_account(1, code="1", is_read_only=True, opening_balance=999),
        make_account(2, code="11"),
    ]
    balances = rollup_read_only_balances(accounts, {1: 999, 2: 40})
    assert balances[1] == 40


def test_rollup_without_children_is_zero():
    accounts = [make_account(1, code="1", is_read_only=True)]
    assert rollup_read_only_balances(accounts, {}) == {1: 0}


def test_top_level_total_uses_single_digit_codes():
    accounts = [
        make_account(1, code="1", is_read_only=True),
        make_account(2, code="11"),
        make_account(3, code="2"),
    ]
    balances = rollup_read_only_balances(accounts, {2: 70, 3: 5})
    assert top_level_total(accounts, balances) == 75
