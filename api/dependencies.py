"""Request dependencies shared by the routers."""

from typing import Annotated, Callable

from fastapi import Header, HTTPException

from api.session import TableSession, get_registry


def table_session(game: str) -> Callable[[str], TableSession]:
    """
    Build a dependency resolving the X-Session-ID header to a table.

    Unknown, tampered and expired tokens, or a table of another game, are 404s.
    """

    async def dependency(
        session_id: Annotated[str, Header(alias="X-Session-ID")],
    ) -> TableSession:
        session = get_registry().get(session_id)
        if session is None or session.game != game:
            raise HTTPException(status_code=404, detail=f"No {game} session found")
        return session

    return dependency


async def optional_session(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> TableSession | None:
    """Resolve the session header if one was sent."""
    if session_id is None:
        return None
    return get_registry().get(session_id)
