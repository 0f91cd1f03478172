"""Tests for the stateless repositories against SQLite."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.models import User
from catalog_api.repositories.image_repository import ImageRepository
from catalog_api.repositories.product_repository import ProductRepository
from catalog_api.repositories.user_repository import UserRepository
from catalog_api.repositories.verification_token_repository import (
    VerificationTokenRepository,
)

_HASH = "0" * 64


async def _user(db: AsyncSession, username: str = "repo@example.com") -> User:
    return await UserRepository.create(
        db,
        username=username,
        password_hash="hash",  # nosec B106
        first_name="Repo",
        last_name="User",
    )


async def _product(db: AsyncSession, owner: User, sku: str = "SKU-1"):
    return await ProductRepository.create(
        db,
        owner_user_id=owner.id,
        name="Thing",
        description="A thing",
        sku=sku,
        manufacturer="Maker",
        quantity=5,
    )


class TestUserRepository:
    """Tests for UserRepository."""

    async def test_create_normalizes_username_and_stamps_times(self, db_session):
        """Username is lower-cased; both timestamps are set and aware."""
        user = await _user(db_session, "Mixed.Case@Example.com")
        assert user.username == "mixed.case@example.com"
        assert user.verified is False
        assert user.account_created == user.account_updated
        assert user.account_created.tzinfo is not None

    async def test_get_by_username_is_case_insensitive(self, db_session):
        """Lookup should ignore case."""
        await _user(db_session)
        found = await UserRepository.get_by_username(db_session, "REPO@example.com")
        assert found is not None

    async def test_duplicate_username_violates_constraint(self, db_session):
        """The unique constraint should back the username check."""
        await _user(db_session)
        with pytest.raises(IntegrityError):
            await _user(db_session, "REPO@example.com")

    async def test_update_rejects_protected_fields(self, db_session):
        """Only first_name, last_name and password_hash may be updated."""
        user = await _user(db_session)
        with pytest.raises(ValueError, match="verified"):
            await UserRepository.update(db_session, user.id, verified="true")

    async def test_update_stamps_account_updated(self, db_session):
        """A successful update moves account_updated forward."""
        user = await _user(db_session)
        before = user.account_updated
        updated = await UserRepository.update(db_session, user.id, first_name="New")
        assert updated is not None
        assert updated.first_name == "New"
        assert updated.account_updated >= before

    async def test_update_missing_user_returns_none(self, db_session):
        """Updating an unknown id should return None."""
        assert await UserRepository.update(db_session, 424242, first_name="X") is None

    async def test_mark_verified(self, db_session):
        """mark_verified should flip the flag for an existing handle only."""
        await _user(db_session)
        assert await UserRepository.mark_verified(db_session, "repo@example.com")
        assert not await UserRepository.mark_verified(db_session, "none@example.com")


class TestProductRepository:
    """Tests for ProductRepository."""

    async def test_exists_by_sku_excludes_self(self, db_session):
        """The product being updated should not conflict with itself."""
        owner = await _user(db_session)
        product = await _product(db_session, owner)
        assert await ProductRepository.exists_by_sku(db_session, "SKU-1")
        assert not await ProductRepository.exists_by_sku(
            db_session, "SKU-1", exclude_id=product.id
        )

    async def test_duplicate_sku_violates_constraint(self, db_session):
        """The unique constraint should back the SKU check."""
        owner = await _user(db_session)
        await _product(db_session, owner)
        with pytest.raises(IntegrityError):
            await _product(db_session, owner)

    async def test_update_rejects_owner_reassignment(self, db_session):
        """owner_user_id is not an updatable field."""
        owner = await _user(db_session)
        product = await _product(db_session, owner)
        with pytest.raises(ValueError, match="owner_user_id"):
            await ProductRepository.update(db_session, product, owner_user_id=99)

    async def test_delete_cascades_to_images(self, db_session):
        """Deleting a product should remove its image rows."""
        owner = await _user(db_session)
        product = await _product(db_session, owner)
        await ImageRepository.create(
            db_session,
            product_id=product.id,
            file_name="a.png",
            storage_path="owner_1/resource_1/a.png",
        )
        await db_session.commit()

        loaded = await ProductRepository.get_by_id(db_session, product.id)
        await ProductRepository.delete(db_session, loaded)
        assert await ImageRepository.list_for_product(db_session, product.id) == []


class TestImageRepository:
    """Tests for ImageRepository."""

    async def test_get_for_product_checks_parent(self, db_session):
        """An image should only be found under its own product."""
        owner = await _user(db_session)
        first = await _product(db_session, owner, "SKU-A")
        second = await _product(db_session, owner, "SKU-B")
        image = await ImageRepository.create(
            db_session,
            product_id=first.id,
            file_name="a.png",
            storage_path="owner_1/resource_1/x.png",
        )
        assert await ImageRepository.get_for_product(
            db_session, product_id=first.id, image_id=image.id
        )
        assert (
            await ImageRepository.get_for_product(
                db_session, product_id=second.id, image_id=image.id
            )
            is None
        )

    async def test_storage_path_is_unique(self, db_session):
        """Two rows cannot point at the same stored object."""
        owner = await _user(db_session)
        product = await _product(db_session, owner)
        await ImageRepository.create(
            db_session, product_id=product.id, file_name="a.png", storage_path="p"
        )
        with pytest.raises(IntegrityError):
            await ImageRepository.create(
                db_session, product_id=product.id, file_name="b.png", storage_path="p"
            )


class TestVerificationTokenRepository:
    """Tests for the conditional consume update."""

    async def _token(self, db: AsyncSession, expires_in: timedelta) -> None:
        now = datetime.now(UTC)
        await VerificationTokenRepository.create(
            db,
            email="t@example.com",
            token_hash=_HASH,
            created_at=now,
            expires_at=now + expires_in,
        )

    async def test_consume_succeeds_once(self, db_session):
        """Only the first consume of a live token should win."""
        await self._token(db_session, timedelta(minutes=1))
        assert await VerificationTokenRepository.consume(
            db_session, token_hash=_HASH, email="t@example.com"
        )
        assert not await VerificationTokenRepository.consume(
            db_session, token_hash=_HASH, email="t@example.com"
        )

    async def test_consume_rejects_expired(self, db_session):
        """An expired token should not be consumable."""
        await self._token(db_session, timedelta(seconds=-1))
        assert not await VerificationTokenRepository.consume(
            db_session, token_hash=_HASH, email="t@example.com"
        )

    async def test_consume_rejects_other_handle(self, db_session):
        """A token bound to another handle should not be consumable."""
        await self._token(db_session, timedelta(minutes=1))
        assert not await VerificationTokenRepository.consume(
            db_session, token_hash=_HASH, email="x@example.com"
        )

    async def test_has_unconsumed(self, db_session):
        """Outstanding means unconsumed, expired or not."""
        assert not await VerificationTokenRepository.has_unconsumed(
            db_session, "t@example.com"
        )
        await self._token(db_session, timedelta(seconds=-1))
        assert await VerificationTokenRepository.has_unconsumed(
            db_session, "t@example.com"
        )
