"""Bridge session endpoints.

Read-only status and logout. Authorization happens in-process only; no
endpoint accepts a recovery phrase.
"""

from fastapi import APIRouter, Depends

from jetswap.api.contracts import SessionStatus
from jetswap.api.deps import get_services
from jetswap.bridge import BridgeService

router = APIRouter(prefix="/session")


def _status(services: BridgeService) -> SessionStatus:
    sessions = services.sessions
    sessions.check_expiry()
    session = sessions.session
    active = sessions.is_active()
    return SessionStatus(
        active=active,
        state=sessions.state.value,
        expires_at=session.expires_at if active else None,
        remaining_seconds=sessions.remaining() if active else None,
    )


@router.get("", response_model=SessionStatus)
async def get_session(services: BridgeService = Depends(get_services)) -> SessionStatus:
    """Current bridge session status."""
    return _status(services)


@router.delete("", response_model=SessionStatus)
async def logout(services: BridgeService = Depends(get_services)) -> SessionStatus:
    """Revoke the bridge session."""
    services.logout()
    return _status(services)
