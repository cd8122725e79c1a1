"""Profile service."""

import logging
from typing import Optional

from readshelf.domain.entities import User
from readshelf.domain.errors import InvalidArgumentError, NotFoundError
from readshelf.domain.repositories import IUserRepository
from readshelf.domain.services import IProfileService

logger = logging.getLogger(__name__)


class ProfileService(IProfileService):
    """Handles profile registration and lookup."""

    def __init__(self, user_repository: IUserRepository, default_shelf_name: str):
        self.user_repository = user_repository
        self.default_shelf_name = default_shelf_name

    async def create_profile(
        self,
        user_id: str,
        username: str,
        email: str,
        first_name: str = "",
        last_name: str = "",
        profile_photo: Optional[str] = None,
    ) -> User:
        """Register a profile; its default shelf is created in the same transaction."""
        if not username or not username.strip():
            raise InvalidArgumentError("username is required")
        user = User(
            id=user_id,
            username=username.strip(),
            email=email,
            first_name=first_name,
            last_name=last_name,
            profile_photo=profile_photo,
        )
        created = await self.user_repository.create_with_default_shelf(
            user, self.default_shelf_name
        )
        logger.info("User registered: %s", created.id)
        return created

    async def get_profile(self, user_id: str) -> User:
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def update_profile(
        self,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_photo: Optional[str] = None,
    ) -> User:
        changes = {
            key: value
            for key, value in (
                ("username", username),
                ("email", email),
                ("first_name", first_name),
                ("last_name", last_name),
                ("profile_photo", profile_photo),
            )
            if value is not None
        }
        if "username" in changes:
            changes["username"] = changes["username"].strip()
            if not changes["username"]:
                raise InvalidArgumentError("username cannot be empty")
        if not changes:
            raise InvalidArgumentError("no fields provided to update")
        user = await self.user_repository.update_profile(user_id, changes)
        logger.info("User %s updated fields %s", user_id, sorted(changes))
        return user

    async def delete_profile(self, user_id: str) -> None:
        await self.user_repository.delete(user_id)
        logger.info("User deleted with their shelves and library: %s", user_id)
