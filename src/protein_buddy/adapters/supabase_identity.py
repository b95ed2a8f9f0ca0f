"""Resolve access tokens to account emails through Supabase auth."""

from dataclasses import dataclass
from typing import Protocol

from supabase import AuthError, Client


class IdentityError(RuntimeError):
    """Raised when an access token cannot be resolved to an account."""


class IdentityProvider(Protocol):
    """Interface for mapping bearer tokens to the account email."""

    def email_for_token(self, access_token: str) -> str:
        """Return the email of the signed-in account."""


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Supabase auth implementation of the identity lookup."""

    client: Client

    def email_for_token(self, access_token: str) -> str:
        """Return the email behind an access token.

        Errors from the auth service are re-raised as ``IdentityError`` with
        the service's own message.
        """
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as exc:
            raise IdentityError(exc.message) from exc
        user = response.user if response is not None else None
        if user is None:
            raise IdentityError("No account for this access token")
        if not user.email:
            raise IdentityError("Account has no email address")
        return user.email
