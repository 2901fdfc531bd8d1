"""End-to-end tests of the command line interface."""

import pytest

from bookkeeper.cli.main import cli


@pytest.fixture
def run(cli_runner, temp_db):
    def _run(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])

    return _run


def _add(run, debit, credit, amount, day="2024-06-15", payee="Test payee", status="completed"):
    result = run(
        "transaction", "add",
        "--date", day,
        "--amount", amount,
        "--payee", payee,
        "--debit", debit,
        "--credit", credit,
        "--status", status,
    )
    assert result.exit_code == 0, result.output
    return int(result.output.strip().rsplit(" ", 1)[1])


def test_help_lists_command_groups(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for group in ("account", "transaction", "status", "period", "closing", "report"):
        assert group in result.output


def test_account_commands(run):
    result = run("account", "create", "Assets", "--code", "1", "--class", "asset", "--read-only")
    assert result.exit_code == 0
    assert "Created account 'Assets' (ID: 1)" in result.output
    run("account", "create", "Cash", "--code", "11", "--class", "asset", "--opening-balance", "500")

    result = run("account", "list")
    assert "Cash" in result.output
    assert "read-only" in result.output

    result = run("account", "show", "#11")
    assert "Opening balance: 500.00" in result.output
    assert "Normal balance: debit" in result.output

    result = run("account", "tree")
    lines = [line for line in result.output.splitlines() if line.strip()]
    assert any(line.startswith("  ") and "Cash" in line for line in lines)


def test_duplicate_account_code(run):
    run("account", "create", "Cash", "--code", "11")
    result = run("account", "create", "Bank", "--code", "11")
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_transaction_and_reports(run, chart):
    _add(run, "#112", "#41", "500")
    _add(run, "#61", "#112", "200")
    run("transaction", "add", "--date", "2024-06-20", "--amount", "30", "--account", "#111")

    result = run("transaction", "list", "--start-date", "2024-06-01", "--end-date", "2024-06-30")
    assert "Found 3 transaction(s):" in result.output

    result = run("report", "trial-balance", "--start-date", "2024-01-01", "--end-date", "2024-12-31")
    assert result.exit_code == 0
    assert "Balanced." in result.output
    assert "500.00" in result.output

    result = run(
        "report", "income-statement", "--start-date", "2024-01-01", "--end-date", "2024-12-31"
    )
    assert "300.00" in result.output
    assert "Net income" in result.output

    result = run("report", "ledger", "#111")
    assert "(draft)" in result.output
    assert "Closing balance: 0.00" in result.output


def test_invalid_amount(run, chart):
    result = run("transaction", "add", "--amount", "lots", "--account", "#111")
    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_unknown_account_reference(run, chart):
    result = run("transaction", "add", "--amount", "5", "--account", "#999")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_status_workflow(run, chart):
    txn_id = _add(run, "#62", "#111", "12", status="draft")

    assert "draft -> pending" in run("status", "advance", str(txn_id)).output
    assert "pending -> completed" in run("status", "advance", str(txn_id)).output

    result = run("status", "advance", str(txn_id))
    assert result.exit_code == 1
    assert "cannot be reconciled yet" in result.output

    result = run("status", "check", str(txn_id))
    assert "Not ready to reconcile." in result.output

    run("settings", "set", "--no-conditions")
    result = run("status", "advance", str(txn_id), "--expected", "completed")
    assert result.exit_code == 0
    assert "completed -> reconciled" in result.output

    result = run("status", "unreconcile", str(txn_id), "--reason", "Wrong receipt")
    assert "reconciled -> completed" in result.output
    result = run("status", "history", str(txn_id))
    assert "Unreconciled: Wrong receipt" in result.output


def test_stale_expected_status(run, chart):
    txn_id = _add(run, "#62", "#111", "12", status="pending")
    result = run("status", "advance", str(txn_id), "--expected", "draft")
    assert result.exit_code == 1
    assert "changed concurrently" in result.output


def test_period_commands(run, chart):
    result = run("period", "create", "2024-01-01", "2024-02-15")
    assert "Created period 2024-01-01 to 2024-02-15 (ID: 1)" in result.output

    result = run("period", "create", "2024-02-01", "2024-02-29")
    assert result.exit_code == 1
    assert "Conflicts with period 1: 2024-01-01 to 2024-02-15 (open)" in result.output

    assert run("period", "close", "1").exit_code == 0
    result = run("transaction", "add", "--date", "2024-01-10", "--amount", "5", "--account", "#111")
    assert result.exit_code == 1
    assert "closed accounting period" in result.output

    result = run("period", "reopen", "1")
    assert result.exit_code == 1
    assert "--force" in result.output
    result = run("period", "reopen", "1", "--force")
    assert "Reopened period 2024-01-01 to 2024-02-15" in result.output


def test_closing_run(run, chart):
    _add(run, "#112", "#41", "1000")
    _add(run, "#61", "#112", "400")

    result = run("closing", "preview", "2024-01-01", "2024-12-31", "--pnl-account", "#32")
    assert "Net result: 600.00" in result.output

    result = run(
        "closing", "run",
        "--start-date", "2024-01-01",
        "--end-date", "2024-12-31",
        "--pnl-account", "#32",
        "--retained-earnings", "#31",
    )
    assert result.exit_code == 0, result.output
    assert "Closed period 1 (2024-01-01 to 2024-12-31)" in result.output

    result = run("closing", "run", "--period-id", "1", "--pnl-account", "#32")
    assert "Period 1 is already closed." in result.output

    result = run("report", "balance-sheet", "--as-of", "2024-12-31")
    assert "Balanced." in result.output


def test_closing_run_rejects_mixed_arguments(run, chart):
    result = run(
        "closing", "run", "--period-id", "1", "--start-date", "2024-01-01", "--pnl-account", "#32"
    )
    assert result.exit_code == 1


def test_closing_run_rejects_draft_entries(run, chart):
    result = run(
        "closing", "run",
        "--start-date", "2024-01-01",
        "--end-date", "2024-12-31",
        "--pnl-account", "#32",
        "--entry-status", "draft",
    )
    assert result.exit_code == 2
    assert "Invalid value for '--entry-status'" in result.output
    assert "No periods" in run("period", "list").output


def test_settings(run):
    result = run("settings", "set", "--double-entry", "--min-documents", "2")
    assert "Settings updated." in result.output

    result = run("settings", "show")
    assert "Double-entry mode: on" in result.output
    assert "Minimum required documents: 2" in result.output


def test_documents(run, chart):
    txn_id = _add(run, "#62", "#111", "12")
    result = run("document", "type-create", "Receipt", "--required")
    assert "Created document type 'Receipt' (ID: 1)" in result.output

    result = run("document", "attach", str(txn_id), "1", "receipt.pdf")
    assert f"Attached document 1 to transaction {txn_id}" in result.output

    result = run("document", "list", str(txn_id))
    assert "receipt.pdf" in result.output
    assert "Required documents: 1 of 1" in result.output


def test_owner_isolation(run, cli_runner, temp_db, chart):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--owner", "someone-else", "account", "list"]
    )
    assert result.exit_code == 0
    assert "No accounts found." in result.output
