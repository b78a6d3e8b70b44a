# src/nicorag_gateway/app/services/profile.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from nicorag_gateway.app.auth.obo import OnBehalfOfClient
from nicorag_gateway.app.core.errors import AuthExchangeError, GraphError
from nicorag_gateway.app.services.graph import GraphClient, ProfileRecord


@dataclass(frozen=True)
class ProfileResult:
    """Outcome of the optional profile lookup: either `profile` or `error`."""
    profile: Optional[ProfileRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.profile is not None

    @classmethod
    def success(cls, profile: ProfileRecord) -> "ProfileResult":
        return cls(profile=profile)

    @classmethod
    def failure(cls, error: str) -> "ProfileResult":
        return cls(error=error)


async def lookup_profile(user_token: str, obo: OnBehalfOfClient, graph: GraphClient) -> ProfileResult:
    """
    OBO exchange then Graph /me, folded into a ProfileResult.
    Expected failures (IdP rejection, Graph status, network) never raise.
    """
    try:
        graph_token = await obo.exchange(user_token)
        profile = await graph.fetch_profile(graph_token)
    except (AuthExchangeError, GraphError) as ex:
        return ProfileResult.failure(f"{ex.code}: {ex.detail}")
    except httpx.HTTPError as ex:
        return ProfileResult.failure(f"graph transport error: {ex!r}")
    return ProfileResult.success(profile)


def profile_system_message(profile: ProfileRecord) -> dict:
    return {
        "role": "system",
        "content": (
            "You are the NICO-RAG assistant. Help the user while taking their Microsoft 365 profile "
            f"into account (displayName={profile.display_name}, mail={profile.mail}). "
            "Answer concisely and helpfully."
        ),
    }
