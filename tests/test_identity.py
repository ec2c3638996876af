from pathlib import Path

from lmt_proposals.access import UserRole
from lmt_proposals.identity import INVALID_CREDENTIALS, AccountDirectory, PasswordService


def test_password_service_verifies_its_own_hashes() -> None:
    service = PasswordService(iterations=1_000)
    stored = service.hash("Secret123!")

    assert stored.startswith("pbkdf2$sha256$1000$")
    assert service.verify("Secret123!", stored)
    assert not service.verify("secret123!", stored)
    assert not service.verify("Secret123!", "pbkdf2$broken")
    assert not service.verify("Secret123!", "plain-text")


def test_directory_authenticates_and_persists(tmp_path: Path) -> None:
    path = tmp_path / "accounts.json"
    directory = AccountDirectory(path, PasswordService(iterations=1_000))
    directory.add("Priya", "pass-1", name="Priya Rai", role=UserRole.SALES)

    reloaded = AccountDirectory(path, PasswordService(iterations=1_000))
    user, error = reloaded.authenticate(" priya ", "pass-1")

    assert error is None
    assert user.name == "Priya Rai"
    assert user.role is UserRole.SALES
    assert reloaded.authenticate("priya", "wrong") == (None, INVALID_CREDENTIALS)
    assert reloaded.authenticate("nobody", "pass-1") == (None, INVALID_CREDENTIALS)
    assert reloaded.authenticate("  ", "pass-1") == (None, "Username is required.")


def test_directory_rejects_duplicates(tmp_path: Path) -> None:
    directory = AccountDirectory(tmp_path / "accounts.json", PasswordService(iterations=1_000))
    directory.add("priya", "pass-1", name="Priya", role=UserRole.SALES)

    try:
        directory.add("PRIYA", "pass-2", name="Other", role=UserRole.ADMIN)
    except ValueError as exc:
        assert "already exists" in str(exc)
    else:
        raise AssertionError("duplicate account was accepted")


def test_bootstrap_admin_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("LMT_ACCOUNTS_FILE", str(tmp_path / "team.json"))
    monkeypatch.setenv("LMT_ADMIN_USER", "owner")
    monkeypatch.setenv("LMT_ADMIN_PASS", "letmein")
    monkeypatch.setenv("LMT_ADMIN_NAME", "Agency Owner")

    directory = AccountDirectory.from_env()
    user, error = directory.authenticate("owner", "letmein")

    assert error is None
    assert user.role is UserRole.SUPER_ADMIN
    assert user.hierarchy_level == 5
    assert (tmp_path / "team.json").exists()


def test_no_bootstrap_without_password(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("LMT_ACCOUNTS_FILE", raising=False)
    monkeypatch.delenv("LMT_ADMIN_PASS", raising=False)

    directory = AccountDirectory.from_env(tmp_path / "accounts.json")

    assert len(directory) == 0
    assert directory.authenticate("admin", "") == (None, INVALID_CREDENTIALS)


def test_malformed_records_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "accounts.json"
    path.write_text('[{"username": "ghost"}, {"username": "ops", "password_hash": "x", "role": "Operation"}]')

    directory = AccountDirectory(path)

    assert "ops" in directory
    assert "ghost" not in directory
