"""Tests for turnstile.services.user_service: user CRUD, uniqueness and authority interning."""

import unittest
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from turnstile.core.database import build_engine
from turnstile.core.exceptions import (
    AuthorityNotFoundError,
    ConcurrentModificationError,
    DuplicateIdentityError,
    InvalidInputError,
    UserNotFoundError,
)
from turnstile.core.security import BcryptPasswordHasher
from turnstile.models import Authority, Base, Role, User
from turnstile.schemas.users import UserDetails
from turnstile.services.user_service import UserService


def _session() -> Session:
    """Fresh in-memory SQLite database with the identity tables."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()


def _details(username: str = "randomUser", password: str | None = "pwd", **kwargs: object) -> UserDetails:
    return UserDetails(username=username, password=password, **kwargs)


class UserServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = _session()
        self.hasher = BcryptPasswordHasher(rounds=4)
        self.service = UserService(self.db, self.hasher)

    def tearDown(self) -> None:
        self.db.close()

    def _authority_count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(Authority))


class TestCreateUser(UserServiceTestCase):
    def test_create_stores_hash_not_plain_password(self) -> None:
        user = self.service.create_user(_details(password="s3cret"))
        self.assertNotEqual(user.password, "s3cret")
        self.assertEqual(len(user.password), 60)
        self.assertTrue(self.hasher.verify("s3cret", user.password))

    def test_flags_default_to_true(self) -> None:
        user = self.service.create_user(_details())
        self.assertTrue(user.enabled)
        self.assertTrue(user.account_non_expired)
        self.assertTrue(user.account_non_locked)
        self.assertTrue(user.credentials_non_expired)
        self.assertEqual(user.token_version, 0)

    def test_all_flags_are_honoured_on_create(self) -> None:
        user = self.service.create_user(
            _details(
                enabled=False,
                account_non_expired=False,
                account_non_locked=False,
                credentials_non_expired=False,
            )
        )
        self.assertFalse(user.enabled)
        self.assertFalse(user.account_non_expired)
        self.assertFalse(user.account_non_locked)
        self.assertFalse(user.credentials_non_expired)

    def test_duplicate_username_fails_and_keeps_existing_record(self) -> None:
        self.service.create_user(_details("admin", "pwd", enabled=False))
        with self.assertRaises(DuplicateIdentityError):
            self.service.create_user(_details("admin", "other", authorities=["ADMIN"]))

        user = self.service.load_user_by_username("admin")
        self.assertTrue(self.hasher.verify("pwd", user.password))
        self.assertFalse(user.enabled)
        self.assertEqual(user.authority_names, [])

    def test_missing_password_fails_and_persists_nothing(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.service.create_user(_details(password=None))
        with self.assertRaises(InvalidInputError):
            self.service.create_user(_details(password=""))
        self.assertFalse(self.service.user_exists("randomUser"))

    def test_username_too_long_fails(self) -> None:
        details = UserDetails.model_construct(
            username="u" * 21,
            password="pwd",
            enabled=True,
            account_non_expired=True,
            account_non_locked=True,
            credentials_non_expired=True,
            authorities=[],
        )
        with self.assertRaises(InvalidInputError):
            self.service.create_user(details)

    def test_invalid_authority_name_persists_nothing(self) -> None:
        details = UserDetails.model_construct(
            username="randomUser",
            password="pwd",
            enabled=True,
            account_non_expired=True,
            account_non_locked=True,
            credentials_non_expired=True,
            authorities=["USER", ""],
        )
        with self.assertRaises(InvalidInputError):
            self.service.create_user(details)
        self.assertFalse(self.service.user_exists("randomUser"))
        self.assertEqual(self._authority_count(), 0)

    def test_concurrent_insert_of_same_username_maps_to_duplicate(self) -> None:
        self.service.create_user(_details("admin"))
        self.db.expunge_all()
        # Simulate losing the race: the existence check passes, the insert conflicts.
        with patch.object(UserService, "user_exists", return_value=False):
            with self.assertRaises(DuplicateIdentityError):
                self.service.create_user(_details("admin", authorities=["ADMIN"]))
        self.assertTrue(self.service.user_exists("admin"))
        self.assertEqual(self._authority_count(), 0)


class TestAuthorityInterning(UserServiceTestCase):
    def test_two_users_share_one_authority_row(self) -> None:
        self.service.create_user(_details("alice", authorities=[Role.ADMIN.value]))
        self.service.create_user(_details("bob", authorities=["ADMIN", "USER"]))

        rows = self.db.scalars(select(Authority).where(Authority.name == "ADMIN")).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(sorted(u.username for u in rows[0].users), ["alice", "bob"])
        self.assertEqual(self._authority_count(), 2)

    def test_repeated_name_in_one_request_is_linked_once(self) -> None:
        user = self.service.create_user(_details(authorities=["USER", "USER"]))
        self.assertEqual(user.authority_names, ["USER"])

    def test_existing_authority_is_reused(self) -> None:
        self.service.authority_service.create_authority("AUDITOR")
        user = self.service.create_user(_details(authorities=["AUDITOR"]))
        self.assertEqual(user.authority_names, ["AUDITOR"])
        self.assertEqual(self._authority_count(), 1)


class TestUpdateUser(UserServiceTestCase):
    def test_update_overwrites_flags_and_authorities(self) -> None:
        self.service.create_user(_details(authorities=["USER"]))
        details = UserDetails.from_model(self.service.load_user_by_username("randomUser"))
        details.enabled = False
        details.account_non_locked = False
        details.authorities = ["ADMIN"]

        user = self.service.update_user(details)

        self.assertFalse(user.enabled)
        self.assertFalse(user.account_non_locked)
        self.assertEqual(user.authority_names, ["ADMIN"])
        # USER is unlinked but not deleted
        self.assertEqual(self._authority_count(), 2)

    def test_update_without_password_keeps_hash(self) -> None:
        created = self.service.create_user(_details(password="pwd"))
        old_hash = created.password
        user = self.service.update_user(_details(password=None, enabled=False))
        self.assertEqual(user.password, old_hash)

    def test_update_with_password_rehashes(self) -> None:
        self.service.create_user(_details(password="pwd"))
        user = self.service.update_user(_details(password="pwd2"))
        self.assertTrue(self.hasher.verify("pwd2", user.password))
        self.assertFalse(self.hasher.verify("pwd", user.password))

    def test_update_does_not_bump_token_version(self) -> None:
        self.service.create_user(_details())
        user = self.service.update_user(_details(password="pwd2"))
        self.assertEqual(user.token_version, 0)

    def test_update_missing_user_fails(self) -> None:
        with self.assertRaises(UserNotFoundError):
            self.service.update_user(_details("ghost"))


class TestUserAttributes(UserServiceTestCase):
    def test_attributes_round_trip_on_create(self) -> None:
        attributes = {"email": "alice@example.com", "age": 42, "tags": ["ops"], "manager": None}
        self.service.create_user(_details("alice", attributes=attributes))

        self.db.expire_all()
        user = self.service.load_user_by_username("alice")
        self.assertEqual(user.attributes, attributes)
        self.assertEqual(UserDetails.from_model(user).attributes, attributes)

    def test_attributes_default_to_empty(self) -> None:
        self.assertEqual(self.service.create_user(_details()).attributes, {})

    def test_update_replaces_attributes(self) -> None:
        self.service.create_user(_details(attributes={"email": "old@example.com", "phone": "1"}))
        details = UserDetails.from_model(self.service.load_user_by_username("randomUser"))
        details.attributes = {"email": "new@example.com"}
        self.service.update_user(details)

        self.db.expire_all()
        user = self.service.load_user_by_username("randomUser")
        self.assertEqual(user.attributes, {"email": "new@example.com"})

    def test_update_keeps_attributes_carried_by_from_model(self) -> None:
        self.service.create_user(_details(attributes={"email": "a@example.com"}))
        details = UserDetails.from_model(self.service.load_user_by_username("randomUser"))
        details.enabled = False
        self.service.update_user(details)

        self.db.expire_all()
        user = self.service.load_user_by_username("randomUser")
        self.assertEqual(user.attributes, {"email": "a@example.com"})
        self.assertFalse(user.enabled)

    def test_non_string_keys_are_rejected(self) -> None:
        details = _details()
        details.attributes = {1: "x"}
        with self.assertRaises(InvalidInputError):
            self.service.create_user(details)
        self.assertFalse(self.service.user_exists("randomUser"))


class TestCommitFailures(UserServiceTestCase):
    def _conflict(self) -> IntegrityError:
        return IntegrityError("UPDATE users", {}, Exception("FOREIGN KEY constraint failed"))

    def test_update_conflict_is_typed_and_rolled_back(self) -> None:
        self.service.create_user(_details(authorities=["USER"]))
        with patch.object(self.db, "commit", side_effect=self._conflict()):
            with self.assertRaises(ConcurrentModificationError):
                self.service.update_user(_details(enabled=False, authorities=["ADMIN"]))

        user = self.service.load_user_by_username("randomUser")
        self.assertTrue(user.enabled)
        self.assertEqual(user.authority_names, ["USER"])
        self.assertFalse(self.service.authority_service.authority_exists("ADMIN"))

    def test_delete_conflict_is_typed_and_rolled_back(self) -> None:
        self.service.create_user(_details())
        with patch.object(self.db, "commit", side_effect=self._conflict()):
            with self.assertRaises(ConcurrentModificationError):
                self.service.delete_user("randomUser")
        self.assertTrue(self.service.user_exists("randomUser"))

    def test_authority_deleted_while_interning_is_typed(self) -> None:
        with patch.object(self.service.authority_service, "_insert_if_absent"):
            with self.assertRaises(AuthorityNotFoundError):
                self.service.create_user(_details(authorities=["ADMIN"]))
        self.assertFalse(self.service.user_exists("randomUser"))


class TestDeleteAndLookup(UserServiceTestCase):
    def test_create_then_delete(self) -> None:
        self.service.create_user(_details())
        self.assertTrue(self.service.user_exists("randomUser"))
        self.service.delete_user("randomUser")
        self.assertFalse(self.service.user_exists("randomUser"))

    def test_delete_missing_user_fails(self) -> None:
        with self.assertRaises(UserNotFoundError) as ctx:
            self.service.delete_user("randomUser")
        self.assertEqual(ctx.exception.message, "Could not find User randomUser")

    def test_delete_keeps_authorities(self) -> None:
        self.service.create_user(_details(authorities=["ADMIN"]))
        self.service.delete_user("randomUser")
        authority = self.service.authority_service.get_by_name("ADMIN")
        self.assertEqual(authority.users, [])

    def test_load_missing_user_fails(self) -> None:
        with self.assertRaises(UserNotFoundError):
            self.service.load_user_by_username("nobody")
        with self.assertRaises(UserNotFoundError):
            self.service.load_user_by_username("")

    def test_list_users_is_sorted(self) -> None:
        self.service.create_user(_details("carol"))
        self.service.create_user(_details("alice"))
        self.assertEqual([u.username for u in self.service.list_users()], ["alice", "carol"])
        self.assertIsInstance(self.service.list_users()[0], User)


if __name__ == "__main__":
    unittest.main()
