"""Registration, login and the current-user lookup."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from datavista.core.database import Database, Repository
from datavista.core.decorators import log_execution_time
from datavista.core.exceptions import Conflict, InvalidCredentials
from datavista.core.security import AuthContext, CredentialService, require_authenticated
from datavista.models.model import User
from datavista.schemas.schema import Credentials, RegisterInput

logger = logging.getLogger(__name__)


@dataclass
class AuthPayload:
    token: str
    user: User


class AuthService:
    def __init__(self, database: Database, credentials: CredentialService):
        self.database = database
        self.credentials = credentials
        self.users = Repository(User)

    @log_execution_time
    async def register(self, data: RegisterInput) -> AuthPayload:
        # bcrypt is CPU bound; keep it off the event loop
        digest = await asyncio.to_thread(self.credentials.hash_password, data.password)

        async with self.database.session() as session:
            if await self.users.exists(session, email=data.email):
                raise Conflict("User already exists")

            try:
                user = await self.users.create(session, {
                    "email": data.email,
                    "password": digest,
                    "role": data.role,
                })
            except IntegrityError as e:
                raise Conflict("User already exists") from e

        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return AuthPayload(token=self.credentials.create_access_token(user.id, user.role), user=user)

    @log_execution_time
    async def login(self, data: Credentials) -> AuthPayload:
        async with self.database.session() as session:
            user = await self.users.find_unique(session, email=data.email)

        if user is None:
            raise InvalidCredentials()

        valid = await asyncio.to_thread(self.credentials.verify_password, data.password, user.password)
        if not valid:
            raise InvalidCredentials()

        return AuthPayload(token=self.credentials.create_access_token(user.id, user.role), user=user)

    async def me(self, context: AuthContext) -> Optional[User]:
        require_authenticated(context)

        async with self.database.session() as session:
            return await self.users.get(session, context.subject_id)
