"""
Authentication provider
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional
import jwt
from passlib.context import CryptContext
from taskwise.api.document_store import DocumentStore
from taskwise.config.constants import PASSWORD_MIN_LENGTH, USERS_COLLECTION
from taskwise.config.settings import settings
from taskwise.models.task import new_id
from taskwise.models.user import AuthSession, User
from taskwise.utils.error_handler import (
    AuthError,
    EmailAlreadyInUseError,
    ValidationError,
    WrongPasswordError,
)
from taskwise.utils.logger import logger

AuthListener = Callable[[Optional[User]], None]


class LocalAuthProvider:
    """
    Email/password authentication with users kept in the document store

    Tracks the signed-in user of this process and notifies observers on
    every change, and issues bearer tokens for the HTTP surface.
    """

    def __init__(
        self,
        store: DocumentStore,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        """
        Initialize authentication provider

        Args:
            store: Document store holding user documents
            secret: JWT signing secret (defaults to settings)
            algorithm: JWT algorithm (defaults to settings)
            expire_minutes: Token lifetime (defaults to settings)
        """
        self.store = store
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expire_minutes = expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
        self._current_user: Optional[User] = None
        self._listeners: List[AuthListener] = []
        self.logger = logger

    @property
    def current_user(self) -> Optional[User]:
        """Signed-in user, None when signed out"""
        return self._current_user

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """
        Observe the signed-in user

        The listener is called right away with the current user and again
        after every sign-in, sign-up and sign-out.

        Args:
            listener: Callable receiving the user (or None)

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)
        listener(self._current_user)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_current_user(self, user: Optional[User]):
        self._current_user = user
        for listener in list(self._listeners):
            listener(user)

    @staticmethod
    def _user_from_document(document: Dict) -> User:
        return User(
            id=document["id"],
            display_name=document.get("displayName"),
            email=document["email"],
            avatar_url=document.get("avatarUrl"),
        )

    async def _find_by_email(self, email: str) -> Optional[Dict]:
        documents = await self.store.query(USERS_COLLECTION, {"email": email.strip().lower()})
        return documents[0] if documents else None

    def _check_new_password(self, password: str, field: str = "password"):
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
                field=field,
            )

    def create_access_token(self, user_id: str) -> str:
        """
        Create signed access token

        Args:
            user_id: Subject of the token

        Returns:
            Encoded JWT
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        return jwt.encode({"sub": user_id, "exp": expire}, self.secret, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> User:
        """
        Resolve a bearer token to its user

        Args:
            token: Encoded JWT

        Returns:
            User

        Raises:
            AuthError: If the token is expired, malformed or its user is gone
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthError("Session expired. Please log in again.")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token")

        user_id = payload.get("sub")
        if not user_id:
            raise AuthError("Invalid token payload")

        document = await self.store.get(USERS_COLLECTION, user_id)
        if document is None:
            raise AuthError("User not found")
        return self._user_from_document(document)

    async def register(self, display_name: str, email: str, password: str) -> AuthSession:
        """
        Create an account and issue its token

        Leaves the signed-in user of this provider untouched, so one
        provider can serve many users at once.

        Args:
            display_name: Name shown in the app
            email: Login email
            password: Plain password

        Returns:
            AuthSession for the new user

        Raises:
            ValidationError: If the name is empty or the password too short
            EmailAlreadyInUseError: If the email is taken
        """
        if not display_name or not display_name.strip():
            raise ValidationError("Please enter your name.", field="display_name")
        self._check_new_password(password)

        email = email.strip().lower()
        if await self._find_by_email(email):
            raise EmailAlreadyInUseError()

        document = {
            "id": new_id(),
            "displayName": display_name.strip(),
            "email": email,
            "avatarUrl": None,
            "passwordHash": self.pwd_context.hash(password),
            "createdAt": datetime.now(timezone.utc),
        }
        await self.store.insert(USERS_COLLECTION, document)

        user = self._user_from_document(document)
        self.logger.info(f"[Auth] Signed up user {user.id}")
        return AuthSession(user=user, token=self.create_access_token(user.id))

    async def sign_up(self, display_name: str, email: str, password: str) -> AuthSession:
        """Create an account and sign it in"""
        session = await self.register(display_name, email, password)
        self._set_current_user(session.user)
        return session

    async def authenticate(self, email: str, password: str) -> AuthSession:
        """
        Check email and password and issue a token

        Leaves the signed-in user of this provider untouched.

        Args:
            email: Login email
            password: Plain password

        Returns:
            AuthSession

        Raises:
            WrongPasswordError: If the password does not match
            AuthError: If no account exists for the email
        """
        document = await self._find_by_email(email)
        if document is None:
            raise AuthError("No account found for this email.")
        if not self.pwd_context.verify(password, document.get("passwordHash", "")):
            raise WrongPasswordError("The password you entered is incorrect.")

        user = self._user_from_document(document)
        self.logger.info(f"[Auth] Signed in user {user.id}")
        return AuthSession(user=user, token=self.create_access_token(user.id))

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password"""
        session = await self.authenticate(email, password)
        self._set_current_user(session.user)
        return session

    def sign_out(self):
        """Sign out the current user"""
        if self._current_user is not None:
            self.logger.info(f"[Auth] Signed out user {self._current_user.id}")
        self._set_current_user(None)

    async def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str,
        user_id: Optional[str] = None,
    ):
        """
        Change password after re-authenticating with the current one

        Args:
            current_password: Password in use now
            new_password: Replacement password
            confirm_password: Replacement typed again
            user_id: Account to change (defaults to the signed-in user)

        Raises:
            AuthError: If nobody is signed in
            ValidationError: If the new password is too short or unconfirmed
            WrongPasswordError: If re-authentication fails
        """
        user_id = user_id or (self._current_user.id if self._current_user else None)
        if not user_id:
            raise AuthError("No user is signed in.")
        if not current_password:
            raise ValidationError("Current password is required", field="current_password")
        self._check_new_password(new_password, field="new_password")
        if new_password != confirm_password:
            raise ValidationError("New passwords don't match", field="confirm_password")

        document = await self.store.get(USERS_COLLECTION, user_id)
        if document is None:
            raise AuthError("No user is signed in.")

        # Re-authenticate
        if not self.pwd_context.verify(current_password, document.get("passwordHash", "")):
            raise WrongPasswordError()

        await self.store.update(
            USERS_COLLECTION,
            user_id,
            {"passwordHash": self.pwd_context.hash(new_password)},
        )
        self.logger.info(f"[Auth] Password changed for user {user_id}")
