"""
Session Manager
Password sign-in, sign-out and session lookup backed by the reserved users collection
"""

import logging
import uuid
from typing import Any, Dict, Optional

from .collection import CURRENT_USER_KEY, SESSION_KEY, CollectionStore, Record
from .errors import LocalbaseError, UserNotFoundError
from .response import Response, respond

logger = logging.getLogger('localbase.auth')

USERS_COLLECTION = 'users'


class SessionManager:
    """
    States: signed out (no session key) -> signed in (session key holds the
    token and the user reference) -> signed out.

    The password argument is accepted but never checked against stored
    credentials: any password signs in a user whose email exists. Sessions do
    not expire.
    """

    def __init__(self, store: CollectionStore, users_collection: str = USERS_COLLECTION):
        self.store = store
        self.users_collection = users_collection

    def _find_user(self, email: str) -> Optional[Record]:
        for user in self.store.load(self.users_collection):
            if user.get('email') == email:
                return user
        return None

    async def _sign_in(self, email: str, password: str) -> Dict[str, Any]:
        user = self._find_user(email)
        if user is None:
            raise UserNotFoundError(f"User not found: {email}", {'email': email})

        logger.warning(f"Signing in {email} without password verification")

        now = self.store.now()
        auth_user = {
            'id': user.get('id'),
            'email': user.get('email'),
            'created_at': now
        }
        session = {
            'access_token': uuid.uuid4().hex,
            'token_type': 'bearer',
            'user': auth_user,
            'created_at': now
        }

        self.store.write_value(CURRENT_USER_KEY, user)
        try:
            self.store.write_value(SESSION_KEY, session)
        except LocalbaseError:
            self.store.remove_value(CURRENT_USER_KEY)
            raise

        logger.info(f"Signed in user {auth_user['id']}")
        return {'user': auth_user, 'session': session}

    async def sign_in_with_password(self, email: str, password: str) -> Response:
        return await respond('sign_in_with_password', lambda: self._sign_in(email, password))

    async def _sign_out(self) -> Dict[str, Any]:
        self.store.remove_value(SESSION_KEY)
        self.store.remove_value(CURRENT_USER_KEY)
        logger.info("Signed out")
        return {}

    async def sign_out(self) -> Response:
        return await respond('sign_out', self._sign_out)

    def _read_or_none(self, key: str) -> Optional[Any]:
        try:
            return self.store.read_value(key)
        except LocalbaseError as e:
            logger.warning(f"Ignoring unreadable {key}: {e.message}")
            return None

    async def get_session(self) -> Response:
        session = self._read_or_none(SESSION_KEY)
        if not isinstance(session, dict):
            session = None
        return Response.success({'session': session})

    async def get_user(self) -> Response:
        user = None
        if isinstance(self._read_or_none(SESSION_KEY), dict):
            user = self._read_or_none(CURRENT_USER_KEY)
        return Response.success({'user': user if isinstance(user, dict) else None})
