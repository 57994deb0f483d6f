"""
Business logic for accounts and sign in.

The ``UserService`` registers users, checks passwords, issues and
redeems passwordless sign-in links and completes the account profile
that turns a fresh account into a customer or a provider.  It also
decides the *home route* of a user, the page the front end lands on
after sign in (see :func:`resolve_home_route`).
"""

import json
import logging
import secrets
import sqlite3
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from dial_a_service.app.core.config import settings
from dial_a_service.app.core.db import get_connection
from dial_a_service.app.core.realtime import hub
from dial_a_service.app.core.security import create_access_token, hash_password, hash_token, verify_password
from dial_a_service.app.schemas.user import (
    AccountProfileResult,
    AccountProfileUpdate,
    UserRead,
    UserRegister,
)
from dial_a_service.app.services.email_service import EmailService
from dial_a_service.app.services.provider_service import provider_from_row


logger = logging.getLogger(__name__)

MAGIC_LINK_MESSAGE = "Check your email for the magic link!"


def resolve_home_route(role: Optional[str], provider: Optional[Mapping[str, Any]] = None) -> str:
    """Return the route a signed-in user should be sent to.

    Users without a role still have to complete their account.
    Providers go through onboarding first and then wait on the pending
    page until an administrator approves them.
    """
    if not role:
        return "/account"
    if role == "customer":
        return "/customer"
    if role == "admin":
        return "/admin/dashboard"
    if provider is None or not provider["onboarding_completed_at"]:
        return "/provider/onboard"
    if provider["verification_status"] == "approved":
        return "/provider/dashboard"
    return "/provider/pending"


def _user_from_row(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        phone=row["phone"],
        city=row["city"],
        role=row["role"],
        disabled=bool(row["disabled"]),
    )


class UserService:
    """Service for accounts, sign in and profile completion."""

    @classmethod
    async def register(cls, data: UserRegister) -> UserRead:
        """Create an account with a password.

        Addresses listed in ``ADMIN_EMAILS`` are created as
        administrators; everybody else starts without a role until they
        complete their profile.  Raises ``ValueError`` if the e-mail is
        taken.
        """
        role = "admin" if data.email in settings.admin_emails else None
        conn = get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "INSERT INTO users (email, password, full_name, role) VALUES (?, ?, ?, ?)",
                    (data.email, hash_password(data.password), data.full_name, role),
                )
            except sqlite3.IntegrityError:
                raise ValueError("Email already registered")
            user_id = cursor.lastrowid
            conn.commit()
            logger.info("Registered user %s (role=%s)", data.email, role)
            row = cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return _user_from_row(row)
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Check credentials; returns the user or ``None``.

        Raises ``PermissionError`` when the password matches but the
        account is disabled.
        """
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password"]):
            return None
        if row["disabled"]:
            raise PermissionError("User account disabled")
        return _user_from_row(row)

    @classmethod
    async def request_magic_link(cls, email: str) -> str:
        """Send a single-use sign-in link to ``email``.

        The account is created on the fly if it does not exist yet.
        Only the SHA-256 of the token is stored.  The same message is
        returned whether or not the mail could be delivered.
        """
        token = secrets.token_urlsafe(32)
        expires_at = datetime.utcnow() + timedelta(minutes=settings.magic_link_ttl_minutes)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if row:
                user_id = row["id"]
            else:
                role = "admin" if email in settings.admin_emails else None
                cursor.execute("INSERT INTO users (email, role) VALUES (?, ?)", (email, role))
                user_id = cursor.lastrowid
                logger.info("Created passwordless account for %s", email)
            cursor.execute(
                "INSERT INTO magic_links (user_id, token_hash, expires_at) VALUES (?, ?, ?)",
                (user_id, hash_token(token), expires_at.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
        link = f"{settings.app_url.rstrip('/')}/auth/callback?token={token}"
        await EmailService.send_magic_link(email, link)
        return MAGIC_LINK_MESSAGE

    @classmethod
    async def verify_magic_link(cls, token: str) -> str:
        """Redeem a sign-in link and return a bearer token.

        Raises ``PermissionError`` for unknown, used or expired links and
        for disabled accounts.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                """
                SELECT m.id, m.expires_at, m.used_at, u.email, u.disabled
                FROM magic_links m JOIN users u ON u.id = m.user_id
                WHERE m.token_hash = ?
                """,
                (hash_token(token),),
            ).fetchone()
            if not row or row["used_at"] or datetime.fromisoformat(row["expires_at"]) < datetime.utcnow():
                raise PermissionError("Invalid or expired link")
            if row["disabled"]:
                raise PermissionError("User account disabled")
            cursor.execute(
                "UPDATE magic_links SET used_at = ? WHERE id = ?",
                (datetime.utcnow().isoformat(), row["id"]),
            )
            conn.commit()
            return create_access_token({"sub": row["email"]})
        finally:
            conn.close()

    @classmethod
    async def get_user(cls, user_id: int) -> UserRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise ValueError(f"User {user_id} not found")
        return _user_from_row(row)

    @classmethod
    async def home_route(cls, user_id: int) -> str:
        conn = get_connection()
        try:
            user = conn.execute("SELECT role FROM users WHERE id = ?", (user_id,)).fetchone()
            if not user:
                raise ValueError(f"User {user_id} not found")
            provider = conn.execute(
                "SELECT onboarding_completed_at, verification_status FROM providers WHERE id = ?",
                (user_id,),
            ).fetchone()
        finally:
            conn.close()
        return resolve_home_route(user["role"], provider)

    @classmethod
    async def complete_profile(cls, user_id: int, data: AccountProfileUpdate) -> AccountProfileResult:
        """Store the account form and pick the user's role.

        The form is also kept as JSON in ``users.metadata``.  Choosing
        ``provider`` creates the provider record (or refreshes its
        contact details if it already exists).  Administrators keep
        their role; a ``ValueError`` is raised if they try to change it.
        """
        metadata: Dict[str, Any] = data.model_dump()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            user = cursor.execute("SELECT role FROM users WHERE id = ?", (user_id,)).fetchone()
            if not user:
                raise ValueError(f"User {user_id} not found")
            if user["role"] == "admin":
                raise ValueError("Administrators cannot change their role")
            cursor.execute(
                """
                UPDATE users
                SET full_name = ?, phone = ?, city = ?, role = ?, metadata = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (data.full_name, data.phone_number, data.city, data.role, json.dumps(metadata), user_id),
            )
            provider_event = None
            if data.role == "provider":
                existing = cursor.execute("SELECT id FROM providers WHERE id = ?", (user_id,)).fetchone()
                if existing:
                    cursor.execute(
                        """
                        UPDATE providers
                        SET full_name = ?, phone = ?, city = ?, updated_at = CURRENT_TIMESTAMP
                        WHERE id = ?
                        """,
                        (data.full_name, data.phone_number, data.city, user_id),
                    )
                    provider_event = "UPDATE"
                else:
                    cursor.execute(
                        """
                        INSERT INTO providers (id, full_name, phone, city, skills, verified)
                        VALUES (?, ?, ?, ?, '[]', 0)
                        """,
                        (user_id, data.full_name, data.phone_number, data.city),
                    )
                    provider_event = "INSERT"
            conn.commit()
            user_row = cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            provider_row = cursor.execute("SELECT * FROM providers WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if provider_event:
            hub.publish("providers", provider_event, new=provider_from_row(provider_row).model_dump(mode="json"))
        logger.info("User %s completed profile as %s", user_id, data.role)
        return AccountProfileResult(
            user=_user_from_row(user_row),
            redirect_to="/provider/onboard" if data.role == "provider" else "/customer",
        )
