"""
Authentication and authorization for the Bookstore API

Each route declares a capability; the configured Authorizer decides whether
the caller holds it. Identity comes from the Cognito authorizer context that
API Gateway attaches to the event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bookstore_backend.utils.response import error_response

BOOKS_READ = "books:read"
BOOKS_WRITE = "books:write"
COVERS_READ = "covers:read"
COVERS_WRITE = "covers:write"

WRITE_CAPABILITIES = frozenset({BOOKS_WRITE, COVERS_WRITE})


def get_claims(event: dict) -> dict:
    """
    Extract JWT claims from the API Gateway authorizer context.

    REST APIs put them under ``authorizer.claims``; HTTP APIs under
    ``authorizer.jwt.claims``.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    if "claims" in authorizer:
        return authorizer["claims"] or {}
    return (authorizer.get("jwt") or {}).get("claims") or {}


def get_user_id(event: dict) -> str | None:
    """
    Extract user ID (sub) from Cognito authorizer context.

    Returns:
        str: The user's Cognito sub, or None if not authenticated
    """
    return get_claims(event).get("sub")


def get_user_groups(event: dict) -> list[str]:
    """
    Extract user groups from Cognito authorizer context.

    Returns:
        list: Group names the user belongs to (e.g., ['admins'])
    """
    groups = get_claims(event).get("cognito:groups", "")
    if isinstance(groups, list):
        return [str(g) for g in groups]
    if not groups:
        return []
    # HTTP APIs render lists as "[a b]"; REST APIs as "a,b"
    groups = groups.strip("[]").replace(",", " ")
    return [g for g in groups.split() if g]


class Authorizer(ABC):
    """Decides whether a request may exercise a route capability."""

    @abstractmethod
    def check(self, event: dict, capability: str) -> dict | None:
        """
        Returns:
            dict: Error response if the request is denied, None if allowed
        """


class AllowAllAuthorizer(Authorizer):
    """Grants every capability to every caller."""

    def check(self, event: dict, capability: str) -> dict | None:
        return None


class CognitoGroupAuthorizer(Authorizer):
    """
    Reads require an authenticated user; writes also require membership in
    the admin group.
    """

    def __init__(self, admin_group: str = "admins"):
        self.admin_group = admin_group

    def check(self, event: dict, capability: str) -> dict | None:
        user_id = get_user_id(event)
        if not user_id:
            return error_response(401, "Unauthorized", "User not authenticated")

        if capability in WRITE_CAPABILITIES and self.admin_group not in get_user_groups(event):
            return error_response(
                403, "Forbidden", f"Only {self.admin_group} may perform {capability}"
            )
        return None


def create_authorizer(auth_mode: str, admin_group: str = "admins") -> Authorizer:
    if auth_mode == "cognito":
        return CognitoGroupAuthorizer(admin_group)
    if auth_mode == "none":
        return AllowAllAuthorizer()
    raise ValueError(f"Unknown auth mode: {auth_mode}")
