from datetime import datetime

import pytest

from meduniverse import cli, pregnancy
from meduniverse.auth_service import authenticate


def test_init_is_idempotent(capsys):
    cli.main(["init"])
    cli.main(["init"])
    assert capsys.readouterr().out.count("Database initialized and seed completed.") == 2


def test_list_beds(capsys):
    cli.main(["list", "beds"])
    out = capsys.readouterr().out
    assert "ICU | 8/8 available" in out
    assert "General Ward | 40/40 available" in out


def test_list_programs(capsys):
    cli.main(["list", "programs"])
    assert "heart | Cardiac Recovery Program (30 days)" in capsys.readouterr().out


def test_list_rejects_unknown_entity():
    with pytest.raises(SystemExit):
        cli.main(["list", "patients"])


def test_create_admin_resets_password(capsys):
    cli.main(["create-admin", "--password", "new-secret"])
    assert capsys.readouterr().out.startswith("Admin ready: ")
    assert authenticate("admin", "new-secret") is not None
    assert authenticate("admin", "admin123") is None


def test_reset_user(capsys, patient_id):
    cli.main(["reset-user", "patient@example.com", "--password", "changed123"])
    cli.main(["reset-user", "ghost@example.com", "--password", "changed123"])
    assert capsys.readouterr().out.splitlines() == ["Password reset.", "User not found."]
    assert authenticate("patient@example.com", "changed123") is not None


def test_reminders(capsys, patient_id):
    cli.main(["reminders"])
    assert capsys.readouterr().out.strip() == "No reminders due."

    pregnancy.create_reminder(patient_id, "Iron tablets", datetime(2024, 6, 1, 8, 0))
    cli.main(["reminders", "--mark-sent"])
    out = capsys.readouterr().out
    assert "Iron tablets" in out
    assert "Reminders marked as sent." in out

    cli.main(["reminders"])
    assert capsys.readouterr().out.strip() == "No reminders due."


def test_db_info(capsys):
    cli.main(["db-info"])
    assert "test.sqlite" in capsys.readouterr().out
