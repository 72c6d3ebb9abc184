"""Unit tests for app.services.accounts: credential check, approval gate, token resolution, admin mutations."""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import IntegrityError

from api_support import DbTestCase
from app.core.errors import (
    Conflict,
    IncorrectPassword,
    InvalidCredentials,
    InvalidToken,
    NotApproved,
    NotFound,
    NotRegistered,
    UserNotFound,
)
from app.core.security import create_access_token, decode_access_token, verify_password
from app.services import accounts


def _settings(uniform: bool = False) -> MagicMock:
    settings = MagicMock()
    settings.AUTH_UNIFORM_LOGIN_ERRORS = uniform
    return settings


class TestRegisterAccount(DbTestCase):
    """register_account creates pending, hashed accounts and refuses duplicates."""

    def test_new_account_is_pending_user(self) -> None:
        user = accounts.register_account(self.db, "Jane Doe", "Jane@Example.com", "Passw0rd1")
        self.assertEqual(user.email, "jane@example.com")
        self.assertEqual(user.role, "user")
        self.assertFalse(user.is_approved)
        self.assertNotEqual(user.password_hash, "Passw0rd1")
        self.assertTrue(verify_password("Passw0rd1", user.password_hash))
        self.assertIsNotNone(user.created_at)

    def test_duplicate_email_conflicts(self) -> None:
        accounts.register_account(self.db, "Jane Doe", "jane@example.com", "Passw0rd1")
        with self.assertRaises(Conflict):
            accounts.register_account(self.db, "Other Name", "JANE@example.com", "Passw0rd1")

    def test_duplicate_display_name_conflicts(self) -> None:
        accounts.register_account(self.db, "Jane Doe", "jane@example.com", "Passw0rd1")
        with self.assertRaises(Conflict):
            accounts.register_account(self.db, "Jane Doe", "other@example.com", "Passw0rd1")

    def test_lost_race_on_unique_constraint_conflicts(self) -> None:
        """Both requests pass the existence check; the loser's insert hits the constraint."""
        session = MagicMock()
        session.query.return_value.filter.return_value.first.return_value = None
        session.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        with self.assertRaises(Conflict):
            accounts.register_account(session, "Jane Doe", "jane@example.com", "Passw0rd1")
        session.rollback.assert_called_once()


class TestCreateAccount(DbTestCase):
    def test_approved_admin_in_one_commit(self) -> None:
        with patch.object(self.db, "commit", wraps=self.db.commit) as commit:
            user = accounts.create_account(
                self.db, "Church Admin", "admin@example.com", "Passw0rd1", role="admin", approved=True
            )
        commit.assert_called_once()
        self.assertEqual(user.role, "admin")
        self.assertTrue(user.is_approved)

    def test_unknown_role_writes_nothing(self) -> None:
        with self.assertRaises(ValueError):
            accounts.create_account(self.db, "Church Admin", "admin@example.com", "Passw0rd1", role="owner")
        self.assertIsNone(accounts.get_by_email(self.db, "admin@example.com"))


class TestAuthenticate(DbTestCase):
    """Credential verification strictly precedes the approval gate."""

    def test_unknown_email(self) -> None:
        with self.assertRaises(NotRegistered):
            accounts.authenticate(self.db, "nobody@example.com", "Passw0rd1", _settings())

    def test_wrong_password_is_incorrect_password_not_not_registered(self) -> None:
        self.make_user(email="jane@example.com")
        with self.assertRaises(IncorrectPassword):
            accounts.authenticate(self.db, "jane@example.com", "Wrong0ne1", _settings())

    def test_wrong_password_on_pending_account_does_not_leak_approval(self) -> None:
        self.make_user(email="jane@example.com", approved=False)
        with self.assertRaises(IncorrectPassword):
            accounts.authenticate(self.db, "jane@example.com", "Wrong0ne1", _settings())

    def test_pending_account_with_correct_password(self) -> None:
        self.make_user(email="jane@example.com", approved=False)
        with self.assertRaises(NotApproved):
            accounts.authenticate(self.db, "jane@example.com", "Passw0rd1", _settings())

    def test_approved_account_authenticates_case_insensitively(self) -> None:
        user = self.make_user(email="jane@example.com")
        found = accounts.authenticate(self.db, "JANE@example.com", "Passw0rd1", _settings())
        self.assertEqual(found.id, user.id)

    def test_uniform_errors_hide_account_existence(self) -> None:
        self.make_user(email="jane@example.com")
        with self.assertRaises(InvalidCredentials):
            accounts.authenticate(self.db, "nobody@example.com", "Passw0rd1", _settings(uniform=True))
        with self.assertRaises(InvalidCredentials):
            accounts.authenticate(self.db, "jane@example.com", "Wrong0ne1", _settings(uniform=True))

    def test_login_issues_token_for_the_account(self) -> None:
        user = self.make_user(email="jane@example.com", role="admin")
        token, logged_in = accounts.login(self.db, "jane@example.com", "Passw0rd1", _settings())
        self.assertEqual(logged_in.id, user.id)
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], str(user.id))
        self.assertEqual(payload["role"], "admin")


class TestResolveToken(DbTestCase):
    """resolve_token maps a token to exactly the account it was issued for."""

    def test_token_resolves_to_its_own_account(self) -> None:
        a = self.make_user(email="a@example.com", username="Alice")
        b = self.make_user(email="b@example.com", username="Bob")
        self.assertEqual(accounts.resolve_token(self.db, create_access_token(a.id, "user")).id, a.id)
        self.assertEqual(accounts.resolve_token(self.db, create_access_token(b.id, "user")).id, b.id)

    def test_expired_token(self) -> None:
        user = self.make_user()
        token = create_access_token(user.id, "user", expires_delta=timedelta(seconds=-5))
        with self.assertRaises(InvalidToken):
            accounts.resolve_token(self.db, token)

    def test_garbage_token(self) -> None:
        with self.assertRaises(InvalidToken):
            accounts.resolve_token(self.db, "not.a.jwt")

    def test_non_numeric_subject(self) -> None:
        with self.assertRaises(InvalidToken):
            accounts.resolve_token(self.db, create_access_token("someone", "user"))

    def test_deleted_account(self) -> None:
        with self.assertRaises(UserNotFound):
            accounts.resolve_token(self.db, create_access_token(999, "user"))


class TestAdminMutations(DbTestCase):
    def test_set_role_is_idempotent(self) -> None:
        user = self.make_user()
        first = accounts.set_role(self.db, user.id, "admin")
        second = accounts.set_role(self.db, user.id, "admin")
        self.assertEqual(first.role, "admin")
        self.assertEqual(second.role, "admin")

    def test_set_role_rejects_unknown_role(self) -> None:
        user = self.make_user()
        with self.assertRaises(ValueError):
            accounts.set_role(self.db, user.id, "superuser")

    def test_approval_can_be_reverted(self) -> None:
        user = self.make_user(approved=False)
        self.assertTrue(accounts.set_approval(self.db, user.id, True).is_approved)
        self.assertFalse(accounts.set_approval(self.db, user.id, False).is_approved)

    def test_missing_account(self) -> None:
        with self.assertRaises(NotFound):
            accounts.set_approval(self.db, 12345, True)
        with self.assertRaises(NotFound):
            accounts.set_role(self.db, 12345, "admin")

    def test_update_profile_refuses_taken_email(self) -> None:
        self.make_user(email="a@example.com", username="Alice")
        bob = self.make_user(email="b@example.com", username="Bob")
        with self.assertRaises(Conflict):
            accounts.update_profile(self.db, bob, "Bob", "a@example.com")

    def test_update_profile_changes_password_only_when_given(self) -> None:
        user = self.make_user()
        old_hash = user.password_hash
        accounts.update_profile(self.db, user, "Member Renamed", "member@example.com")
        self.assertEqual(user.password_hash, old_hash)
        accounts.update_profile(self.db, user, "Member Renamed", "member@example.com", "N3wPassword")
        self.assertTrue(verify_password("N3wPassword", user.password_hash))


if __name__ == "__main__":
    unittest.main()
