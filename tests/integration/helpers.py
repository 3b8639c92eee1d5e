"""Helpers shared by the integration tests."""

import uuid

from src.sb_gateway.auth.jwt_handler import create_access_token


def bearer(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


def unique_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"
