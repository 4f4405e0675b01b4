"""Database repositories for account and contact data."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, SubscriptionTier
from .domain.contact import Contact
from .domain.contracts import CreateContactInput, NewAccountRecord
from .domain.errors import ConflictError

_ACCOUNT_COLUMNS = (
    "account_id, email, password_hash, created_at, subscription, "
    "session_token, avatar_url, verified, verification_token"
)
_CONTACT_COLUMNS = "contact_id, owner_id, name, email, phone, created_at, favorite"


class AccountRepository:
    """Postgres-backed account persistence.

    Every mutation is a single-row ``UPDATE``; concurrent writers to the same
    field resolve as last-writer-wins.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def create_account(self, record: NewAccountRecord) -> Account:
        """Insert a prepared account row, raising ``ConflictError`` on a duplicate email."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, email, password_hash, created_at,
                                              avatar_url, verified, verification_token)
                        VALUES (%s, %s, %s, %s, %s, FALSE, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (
                            account_id,
                            record.email,
                            record.password_hash,
                            now,
                            record.avatar_url,
                            record.verification_token,
                        ),
                    )
                    row = cur.fetchone()
                    conn.commit()
        except errors.UniqueViolation as exc:
            raise ConflictError() from exc
        return self._map_account(row)

    def get_by_id(self, account_id: str) -> Account | None:
        return self._fetch_one("account_id = %s", account_id)

    def get_by_email(self, email: str) -> Account | None:
        return self._fetch_one("email = %s", email)

    def get_by_session_token(self, token: str) -> Account | None:
        return self._fetch_one("session_token = %s", token)

    def get_by_verification_token(self, token: str) -> Account | None:
        return self._fetch_one("verification_token = %s", token)

    def set_session_token(self, account_id: str, token: str | None) -> None:
        """Store or clear the account's current session token."""
        self._execute("UPDATE accounts SET session_token = %s WHERE account_id = %s", (token, account_id))

    def mark_verified(self, account_id: str) -> bool:
        """Flip ``verified`` and clear the verification token in one statement.

        Returns ``False`` when the account was already verified (or is gone).
        """
        rowcount = self._execute(
            """
            UPDATE accounts
            SET verified = TRUE, verification_token = NULL
            WHERE account_id = %s AND verified = FALSE
            """,
            (account_id,),
        )
        return rowcount == 1

    def set_avatar_url(self, account_id: str, avatar_url: str) -> None:
        self._execute("UPDATE accounts SET avatar_url = %s WHERE account_id = %s", (avatar_url, account_id))

    def _fetch_one(self, where: str, value: str) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE {where}", (value,))
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_account(row)

    def _execute(self, query: str, params: tuple[Any, ...]) -> int:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rowcount = cur.rowcount
                conn.commit()
        return rowcount

    def _map_account(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            email=row[1],
            password_hash=row[2],
            created_at=row[3],
            subscription=SubscriptionTier(row[4]),
            session_token=row[5],
            avatar_url=row[6],
            verified=row[7],
            verification_token=row[8],
        )


class ContactRepository:
    """Postgres-backed contact persistence scoped by owning account."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def list_contacts(self, owner_id: str, favorite: bool | None = None) -> list[Contact]:
        query = f"SELECT {_CONTACT_COLUMNS} FROM contacts WHERE owner_id = %s"
        params: list[Any] = [owner_id]
        if favorite is not None:
            query += " AND favorite = %s"
            params.append(favorite)
        query += " ORDER BY created_at, contact_id"

        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, params)
                return [self._map_contact(row) for row in cur.fetchall()]

    def get_contact(self, contact_id: str, owner_id: str) -> Contact | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {_CONTACT_COLUMNS} FROM contacts WHERE contact_id = %s AND owner_id = %s",
                    (contact_id, owner_id),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_contact(row)

    def add_contact(self, owner_id: str, payload: CreateContactInput) -> Contact:
        contact_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO contacts (contact_id, owner_id, name, email, phone, created_at, favorite)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_CONTACT_COLUMNS}
                    """,
                    (contact_id, owner_id, payload.name, payload.email, payload.phone, now, payload.favorite),
                )
                row = cur.fetchone()
                conn.commit()
        return self._map_contact(row)

    def update_contact(self, contact_id: str, owner_id: str, changes: dict[str, Any]) -> Contact | None:
        """Apply ``changes`` (column -> value) and return the updated contact."""
        allowed = {"name", "email", "phone", "favorite"}
        columns = [column for column in changes if column in allowed]
        if not columns:
            return self.get_contact(contact_id, owner_id)
        assignments = ", ".join(f"{column} = %s" for column in columns)
        params = [changes[column] for column in columns] + [contact_id, owner_id]

        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    UPDATE contacts SET {assignments}
                    WHERE contact_id = %s AND owner_id = %s
                    RETURNING {_CONTACT_COLUMNS}
                    """,
                    params,
                )
                row = cur.fetchone()
                conn.commit()
        if not row:
            return None
        return self._map_contact(row)

    def remove_contact(self, contact_id: str, owner_id: str) -> bool:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM contacts WHERE contact_id = %s AND owner_id = %s",
                    (contact_id, owner_id),
                )
                deleted = cur.rowcount == 1
                conn.commit()
        return deleted

    def _map_contact(self, row: tuple) -> Contact:
        return Contact(
            contact_id=row[0],
            owner_id=row[1],
            name=row[2],
            email=row[3],
            phone=row[4],
            created_at=row[5],
            favorite=row[6],
        )
