"""Tests for the verification token workflow with an injected clock."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.core.errors import VerificationPendingError
from catalog_api.models import User, VerificationToken
from catalog_api.repositories.user_repository import UserRepository
from catalog_api.repositories.verification_token_repository import (
    VerificationTokenRepository,
)
from catalog_api.services.verification_service import VerificationService, hash_token

_EMAIL = "verify@example.com"
_START = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
_TTL = timedelta(seconds=60)


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(_START)


@pytest.fixture
def service(db_session: AsyncSession, clock: FakeClock) -> VerificationService:
    return VerificationService(db_session, ttl=_TTL, clock=clock)


@pytest.fixture
async def account(db_session: AsyncSession) -> User:
    user = await UserRepository.create(
        db_session,
        username=_EMAIL,
        password_hash="not-a-real-hash",  # nosec B106
        first_name="Vera",
        last_name="Fication",
    )
    await db_session.commit()
    return user


async def _is_verified(db: AsyncSession) -> bool:
    user = await UserRepository.get_by_username(db, _EMAIL)
    assert user is not None
    await db.refresh(user)
    return user.verified


class TestIssueToken:
    """Tests for VerificationService.issue_token."""

    async def test_stores_only_the_digest(self, service, db_session, account):
        """The plain token must never be persisted."""
        token = await service.issue_token(_EMAIL)
        rows = (await db_session.execute(select(VerificationToken))).scalars().all()
        assert len(rows) == 1
        assert rows[0].token_hash == hash_token(token)
        assert rows[0].token_hash != token

    async def test_expiry_is_creation_plus_window(self, service, db_session, account):
        """expires_at should be created_at + configured window."""
        await service.issue_token(_EMAIL)
        row = (await db_session.execute(select(VerificationToken))).scalar_one()
        assert row.created_at == _START
        assert row.expires_at == _START + _TTL
        assert row.consumed is False

    async def test_second_issue_is_rejected(self, service, account):
        """Issuing while a token is outstanding should fail distinctly."""
        await service.issue_token(_EMAIL)
        with pytest.raises(VerificationPendingError) as exc_info:
            await service.issue_token(_EMAIL)
        assert exc_info.value.code == "VERIFICATION_PENDING"

    async def test_expired_token_still_blocks_reissue(self, service, clock, account):
        """There is no resend: an expired unconsumed token stays outstanding."""
        await service.issue_token(_EMAIL)
        clock.advance(timedelta(hours=1))
        assert await service.has_outstanding_token(_EMAIL)
        with pytest.raises(VerificationPendingError):
            await service.issue_token(_EMAIL)

    async def test_handle_is_normalized(self, service, account):
        """Tokens should be bound to the lower-cased handle."""
        await service.issue_token(_EMAIL.upper())
        assert await service.has_outstanding_token(_EMAIL)


class TestVerify:
    """Tests for VerificationService.verify."""

    async def test_valid_token_verifies_account(self, service, db_session, account):
        """A fresh token bound to the handle should verify the account."""
        token = await service.issue_token(_EMAIL)
        assert await service.verify(_EMAIL, token) is True
        assert await _is_verified(db_session) is True

    async def test_wrong_token_fails(self, service, db_session, account):
        """An unknown token should fail and leave the account unverified."""
        await service.issue_token(_EMAIL)
        assert await service.verify(_EMAIL, "not-the-token") is False
        assert await _is_verified(db_session) is False

    async def test_token_is_single_use(self, service, account):
        """A second verify with the same token should fail."""
        token = await service.issue_token(_EMAIL)
        assert await service.verify(_EMAIL, token) is True
        assert await service.verify(_EMAIL, token) is False

    async def test_expired_token_fails(self, service, clock, db_session, account):
        """A token past its window should fail even if otherwise valid."""
        token = await service.issue_token(_EMAIL)
        clock.advance(_TTL + timedelta(seconds=1))
        assert await service.verify(_EMAIL, token) is False
        assert await _is_verified(db_session) is False

    async def test_token_at_exact_expiry_still_verifies(self, service, clock, account):
        """Expiry is exclusive: now == expires_at is still valid."""
        token = await service.issue_token(_EMAIL)
        clock.advance(_TTL)
        assert await service.verify(_EMAIL, token) is True

    async def test_handle_mismatch_fails(self, service, db_session, account):
        """A token presented with a different handle should fail."""
        await UserRepository.create(
            db_session,
            username="intruder@example.com",
            password_hash="x",  # nosec B106
            first_name="I",
            last_name="N",
        )
        token = await service.issue_token(_EMAIL)
        assert await service.verify("intruder@example.com", token) is False
        assert await _is_verified(db_session) is False

    async def test_unknown_account_fails(self, service):
        """A token for a handle with no account should not verify anything."""
        token = await service.issue_token("ghost@example.com")
        assert await service.verify("ghost@example.com", token) is False

    async def test_consumed_token_is_no_longer_outstanding(self, service, account):
        """After verification the handle has no outstanding token."""
        token = await service.issue_token(_EMAIL)
        await service.verify(_EMAIL, token)
        assert not await service.has_outstanding_token(_EMAIL)


class TestConcurrentVerify:
    """Two verify calls on separate sessions racing for one token."""

    async def test_exactly_one_wins(
        self, service, account, db_session, session_factory, clock, monkeypatch
    ):
        """Both pass the read checks; only one consume updates the row."""
        token = await service.issue_token(_EMAIL)
        await db_session.commit()

        both_checked = asyncio.Barrier(2)
        # SQLite allows one writer at a time; the loser writes after the
        # winner commits, which is the interleaving being exercised
        write_turn = asyncio.Lock()
        real_exists = UserRepository.exists_by_username
        real_consume = VerificationTokenRepository.consume

        async def exists_then_wait(db, username):
            found = await real_exists(db, username)
            await both_checked.wait()
            return found

        async def consume_in_turn(db, **kwargs):
            await write_turn.acquire()
            return await real_consume(db, **kwargs)

        monkeypatch.setattr(UserRepository, "exists_by_username", exists_then_wait)
        monkeypatch.setattr(VerificationTokenRepository, "consume", consume_in_turn)

        async def attempt() -> bool:
            async with session_factory() as session:
                try:
                    verified = await VerificationService(
                        session, ttl=_TTL, clock=clock
                    ).verify(_EMAIL, token)
                    await session.commit()
                    return verified
                finally:
                    write_turn.release()

        results = await asyncio.gather(attempt(), attempt())

        assert sorted(results) == [False, True]
        assert await _is_verified(db_session) is True
        row = await db_session.scalar(
            select(VerificationToken).where(
                VerificationToken.token_hash == hash_token(token)
            )
        )
        await db_session.refresh(row)
        assert row.consumed is True
