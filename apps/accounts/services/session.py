"""
Customer session handling.

``CustomerSession`` is the explicit, passed-down identity every workflow
receives. ``SessionHolder`` owns its lifecycle for a client process::

    SignedOut --sign_in--> SignedIn --sign_out--> SignedOut
    SignedOut --sign_up--> SignedOut

and persists the signed-in session to local storage so a restarted client can
``rehydrate()`` it.
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from django.conf import settings
from django.utils import timezone

from apps.store.records import Customer
from .customer_authentication import authenticate_customer
from .customer_registration import register_customer
from .exceptions import NotAuthenticatedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerSession:
    """Identity of the signed-in customer."""

    customer_id: int
    email: str
    name: str = ''
    signed_in_at: str = ''

    # Lets DRF permission classes treat a session as an authenticated user
    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self):
        return self.customer_id

    @classmethod
    def from_customer(cls, customer: Customer) -> 'CustomerSession':
        return cls(
            customer_id=customer.id,
            email=customer.email,
            name=customer.name,
            signed_in_at=timezone.now().isoformat(),
        )

    @classmethod
    def from_dict(cls, payload: dict) -> 'CustomerSession':
        return cls(
            customer_id=int(payload['customer_id']),
            email=str(payload['email']),
            name=str(payload.get('name', '')),
            signed_in_at=str(payload.get('signed_in_at', '')),
        )

    def to_dict(self) -> dict:
        return asdict(self)


class MemorySessionStorage:
    """Keeps the session payload in memory only."""

    def __init__(self):
        self._payload = None

    def load(self) -> Optional[dict]:
        return self._payload

    def save(self, payload: dict) -> None:
        self._payload = dict(payload)

    def clear(self) -> None:
        self._payload = None


class FileSessionStorage:
    """Keeps the session payload in a JSON file on the local machine."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[dict]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

    def save(self, payload: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload), encoding='utf-8')

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionHolder:
    """Owns the signed-in state of one client."""

    def __init__(self, storage=None):
        self._storage = storage if storage is not None else MemorySessionStorage()
        self._session = None

    @classmethod
    def from_settings(cls) -> 'SessionHolder':
        """Holder persisting to ``settings.CUSTOMER_SESSION_FILE``."""
        return cls(FileSessionStorage(settings.CUSTOMER_SESSION_FILE))

    @property
    def session(self) -> Optional[CustomerSession]:
        return self._session

    @property
    def is_signed_in(self) -> bool:
        return self._session is not None

    def rehydrate(self) -> Optional[CustomerSession]:
        """Restore a session persisted by an earlier process, if there is one."""
        payload = self._storage.load()
        if not payload:
            return None
        try:
            self._session = CustomerSession.from_dict(payload)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed stored session")
            self._storage.clear()
            return None
        return self._session

    def sign_in(self, *, email: str, password: str) -> CustomerSession:
        """
        Authenticate and persist the session.

        Raises:
            InvalidCredentialsError: If credentials are invalid
        """
        customer = authenticate_customer(email=email, password=password)
        session = CustomerSession.from_customer(customer)
        self._storage.save(session.to_dict())
        self._session = session
        logger.info("Customer %s signed in", customer.id)
        return session

    def sign_up(
        self,
        *,
        email: str,
        password: str,
        name: str,
        phone_number: str = '',
        date_of_birth: Optional[date] = None,
    ) -> Customer:
        """Register a customer. The holder stays signed out."""
        return register_customer(
            email=email,
            password=password,
            name=name,
            phone_number=phone_number,
            date_of_birth=date_of_birth,
        )

    def sign_out(self) -> None:
        if self._session is not None:
            logger.info("Customer %s signed out", self._session.customer_id)
        self._session = None
        self._storage.clear()

    def require_session(self) -> CustomerSession:
        """
        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        if self._session is None:
            raise NotAuthenticatedError("Please log in to continue")
        return self._session
