"""Request dependencies."""

from fastapi import Request

from jetswap.bridge import BridgeService


def get_services(request: Request) -> BridgeService:
    return request.app.state.services
