"""Sign-in: password hashing and the account directory."""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from .access import HIERARCHY_LEVELS, User, UserRole

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."


@dataclass
class PasswordService:
    """Manage password hashing using PBKDF2."""

    iterations: int = 120_000
    algorithm: str = "sha256"

    def hash(self, password: str) -> str:
        salt = os.urandom(16)
        derived = hashlib.pbkdf2_hmac(
            self.algorithm, password.encode("utf-8"), salt, self.iterations
        )
        encoded_salt = base64.b64encode(salt).decode("ascii")
        encoded_hash = base64.b64encode(derived).decode("ascii")
        return f"pbkdf2${self.algorithm}${self.iterations}${encoded_salt}${encoded_hash}"

    def verify(self, password: str, stored_hash: str) -> bool:
        if not stored_hash.startswith("pbkdf2$"):
            return False
        try:
            _, algorithm, iteration_str, salt_b64, hash_b64 = stored_hash.split("$")
            iterations = int(iteration_str)
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(hash_b64)
        except (ValueError, TypeError):
            return False
        derived = hashlib.pbkdf2_hmac(algorithm, password.encode("utf-8"), salt, iterations)
        return hmac.compare_digest(derived, expected)


class IdentityProvider(Protocol):
    def authenticate(self, username: str, password: str) -> Tuple[Optional[User], Optional[str]]:
        ...


@dataclass(frozen=True)
class Account:
    username: str
    password_hash: str
    user: User


class AccountDirectory:
    """Accounts kept in a JSON file, optionally seeded from the environment.

    The file holds a list of objects with ``username``, ``password_hash``,
    ``name``, ``role`` and optional ``email``.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        passwords: Optional[PasswordService] = None,
    ):
        self.path = Path(path) if path else None
        self.passwords = passwords or PasswordService()
        self._accounts: Dict[str, Account] = {}
        if self.path is not None:
            self._load()

    @classmethod
    def from_env(cls, default_path: Optional[Path] = None) -> "AccountDirectory":
        raw_path = os.environ.get("LMT_ACCOUNTS_FILE")
        directory = cls(Path(raw_path).expanduser() if raw_path else default_path)
        admin_user = os.environ.get("LMT_ADMIN_USER", "admin").strip()
        admin_pass = os.environ.get("LMT_ADMIN_PASS")
        if admin_pass and admin_user and admin_user.lower() not in directory:
            directory.add(
                admin_user,
                admin_pass,
                name=os.environ.get("LMT_ADMIN_NAME", "Agency Admin"),
                role=UserRole.SUPER_ADMIN,
            )
        if not len(directory):
            logger.warning("No accounts configured; set LMT_ADMIN_PASS to bootstrap one")
        return directory

    def __contains__(self, username: str) -> bool:
        return username.strip().lower() in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            records = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read accounts file %s: %s", self.path, exc)
            return
        for record in records if isinstance(records, list) else []:
            try:
                role = UserRole(record["role"])
                username = str(record["username"]).strip().lower()
                user = User(
                    id=str(record.get("id") or username),
                    name=str(record.get("name") or username),
                    role=role,
                    email=str(record.get("email") or ""),
                    hierarchy_level=HIERARCHY_LEVELS[role],
                )
                self._accounts[username] = Account(username, str(record["password_hash"]), user)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed account record in %s", self.path)

    def _flush(self) -> None:
        if self.path is None:
            return
        records: List[dict] = [
            {
                "id": account.user.id,
                "username": account.username,
                "password_hash": account.password_hash,
                "name": account.user.name,
                "role": account.user.role.value,
                "email": account.user.email,
            }
            for account in self._accounts.values()
        ]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(f".{self.path.name}.tmp")
        temp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        temp_path.replace(self.path)

    def add(
        self,
        username: str,
        password: str,
        *,
        name: str,
        role: UserRole,
        email: str = "",
    ) -> User:
        key = username.strip().lower()
        if not key:
            raise ValueError("Username is required.")
        if not password:
            raise ValueError("Password is required.")
        if key in self._accounts:
            raise ValueError(f"Account '{key}' already exists.")
        user = User(id=key, name=name or key, role=role, email=email, hierarchy_level=HIERARCHY_LEVELS[role])
        self._accounts[key] = Account(key, self.passwords.hash(password), user)
        self._flush()
        logger.info("Account %s created with role %s", key, role.value)
        return user

    def users(self) -> List[User]:
        return sorted(
            (account.user for account in self._accounts.values()),
            key=lambda user: (-user.hierarchy_level, user.name),
        )

    def authenticate(self, username: str, password: str) -> Tuple[Optional[User], Optional[str]]:
        key = username.strip().lower()
        if not key:
            return None, "Username is required."
        account = self._accounts.get(key)
        if account is None or not self.passwords.verify(password, account.password_hash):
            logger.warning("Failed sign-in for %s", key)
            return None, INVALID_CREDENTIALS
        return account.user, None
