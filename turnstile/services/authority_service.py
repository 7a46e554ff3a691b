"""Authority management: create, rename, delete and look up named authorities."""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from turnstile.core.exceptions import (
    AuthorityNotFoundError,
    ConcurrentModificationError,
    DuplicateAuthorityError,
    InvalidInputError,
)
from turnstile.core.security import AUTHORITY_NAME_MAX_LEN
from turnstile.models import Authority

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING support.
_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def validate_authority_name(name: str | None) -> str:
    """Return the stripped name or raise InvalidInputError."""
    if name is None or not name.strip():
        raise InvalidInputError("Authority name must be set and non-empty")
    name = name.strip()
    if len(name) > AUTHORITY_NAME_MAX_LEN:
        raise InvalidInputError(
            f"Authority name must be at most {AUTHORITY_NAME_MAX_LEN} characters"
        )
    return name


class AuthorityService:
    """Authority CRUD against one SQLAlchemy session; each mutation commits on its own."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def create_authority(self, name: str | None) -> Authority:
        name = validate_authority_name(name)
        if self.db.get(Authority, name) is not None:
            raise DuplicateAuthorityError(name)
        authority = Authority(name=name)
        self.db.add(authority)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same name.
            self.db.rollback()
            raise DuplicateAuthorityError(name) from e
        logger.info("Authority created: name=%s", name)
        return authority

    def update_authority(self, name: str, new_name: str | None) -> Authority:
        """
        Rename an authority, keeping every user that holds it.

        The name is the primary key, so the row is re-keyed: a new authority is
        inserted, holders are moved over and the old row is deleted, all in one
        transaction.
        """
        authority = self.get_by_name(name)
        new_name = validate_authority_name(new_name)
        if new_name == authority.name:
            return authority
        if self.db.get(Authority, new_name) is not None:
            raise DuplicateAuthorityError(new_name)

        renamed = Authority(name=new_name)
        self.db.add(renamed)
        holders = list(authority.users)
        for user in holders:
            user.authorities.remove(authority)
            user.authorities.append(renamed)
        self.db.delete(authority)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateAuthorityError(new_name) from e
        logger.info(
            "Authority renamed",
            extra={"old_name": name, "new_name": new_name, "user_count": len(holders)},
        )
        return renamed

    def delete_authority(self, name: str) -> None:
        """Delete an authority. Users holding it lose it; the users themselves are kept."""
        authority = self.get_by_name(name)
        holder_count = len(authority.users)
        self.db.delete(authority)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConcurrentModificationError(
                f"Authority {name} was modified concurrently"
            ) from e
        except Exception:
            self.db.rollback()
            raise
        logger.info("Authority deleted: name=%s, unlinked_users=%s", name, holder_count)

    def get_by_name(self, name: str) -> Authority:
        authority = self.db.get(Authority, name) if name else None
        if authority is None:
            raise AuthorityNotFoundError(name)
        return authority

    def authority_exists(self, name: str) -> bool:
        return bool(name) and self.db.get(Authority, name) is not None

    def list_authorities(self) -> list[Authority]:
        return list(self.db.scalars(select(Authority).order_by(Authority.name)))

    def intern(self, names: Iterable[str]) -> list[Authority]:
        """
        Resolve authority names to rows, creating the missing ones.

        Each missing name is inserted with INSERT ... ON CONFLICT DO NOTHING and
        then read back, so concurrent callers interning the same name end up
        sharing one row. Raises AuthorityNotFoundError if the row is deleted
        concurrently before it is read back. Does not commit: the caller's
        transaction owns it.
        """
        resolved: dict[str, Authority] = {}
        for raw in names:
            name = validate_authority_name(raw)
            if name in resolved:
                continue
            authority = self.db.get(Authority, name)
            if authority is None:
                self._insert_if_absent(name)
                authority = self.db.get(Authority, name)
            if authority is None:
                # Deleted by another transaction between the insert and the read.
                raise AuthorityNotFoundError(name)
            resolved[name] = authority
        return list(resolved.values())

    def _insert_if_absent(self, name: str) -> None:
        insert = _INSERT_BY_DIALECT[self.db.get_bind().dialect.name]
        self.db.execute(
            insert(Authority.__table__).values(name=name).on_conflict_do_nothing(
                index_elements=["name"]
            )
        )
