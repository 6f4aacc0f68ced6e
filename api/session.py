"""Table sessions with signed identifiers."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Union
from uuid import uuid4

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from config import config
from core.baccarat import BaccaratTable
from core.game import BlackjackTable
from core.ledger import DebtLedger
from core.pulse import PulseTable
from core.roulette import RouletteTable
from core.storage import create_store

logger = logging.getLogger(__name__)

Table = Union[BlackjackTable, BaccaratTable, RouletteTable, PulseTable]

TABLE_TYPES: dict[str, type] = {
    "blackjack": BlackjackTable,
    "baccarat": BaccaratTable,
    "roulette": RouletteTable,
    "pulse": PulseTable,
}


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key)

    def sign(self, session_id: str) -> str:
        """Create a signed token from a session ID."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract session_id from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID if valid, None otherwise
        """
        max_age = max_age or config.session_ttl
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


# Global ledger instance, shared by every table on this device
_ledger: DebtLedger | None = None


def get_ledger() -> DebtLedger:
    """Get or create the persistent debt ledger."""
    global _ledger
    if _ledger is None:
        store = create_store(config.ledger, config.redis)
        _ledger = DebtLedger(store, key=config.ledger.key)
    return _ledger


@dataclass
class TableSession:
    """One table plus the lock that serializes actions on it."""

    game: str
    table: Table
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    last_activity: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        self.last_activity = datetime.now()


class SessionRegistry:
    """In-memory registry of live tables keyed by raw session ID."""

    def __init__(self, signer: SessionSigner | None = None) -> None:
        self._signer = signer
        self._sessions: dict[str, TableSession] = {}

    @property
    def signer(self) -> SessionSigner:
        return self._signer or get_session_signer()

    def create(self, game: str, table: Table) -> str:
        """Register a table and return a signed session token."""
        session_id = str(uuid4())
        self._sessions[session_id] = TableSession(game=game, table=table)
        logger.info("Created %s session %s", game, session_id)
        return self.signer.sign(session_id)

    def get(self, token: str) -> TableSession | None:
        """Look up a session by signed token."""
        session_id = self.signer.unsign(token)
        if session_id is None:
            return None
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def delete(self, token: str) -> None:
        session_id = self.signer.unsign(token)
        if session_id is not None:
            self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        """Remove sessions idle for longer than the session TTL."""
        cutoff = datetime.now() - timedelta(seconds=config.session_ttl)
        expired = [
            sid for sid, session in self._sessions.items() if session.last_activity < cutoff
        ]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


# Global registry instance
_registry: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    """Get or create the session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry


def build_table(game: str, names: list[str], dealer_index: int) -> Table:
    """
    Seat the roster at a new table of the requested game.

    Blackjack tables also leave setup and open betting.
    """
    table = TABLE_TYPES[game](ledger=get_ledger())
    players = [table.add_player(name) for name in names]
    table.set_dealer(players[dealer_index].id)
    if isinstance(table, BlackjackTable):
        table.start_session()
    else:
        table.roster.validate()
    return table
