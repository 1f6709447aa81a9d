"""Remote authentication material and store-scoped commit identity."""

from __future__ import annotations

import base64
from dataclasses import dataclass

from repodb.constants import DEFAULT_COMMIT_EMAIL, DEFAULT_COMMIT_NAME


@dataclass(frozen=True, slots=True)
class GitAuth:
    """
    Credentials used when talking to the remote.

    A bearer token wins over user/password; neither means anonymous access.
    ``insecure`` disables TLS verification for the clone and later fetches.
    """

    user: str | None = None
    password: str | None = None
    token: str | None = None
    insecure: bool = False

    def auth_header(self) -> str | None:
        if self.token:
            return f"Authorization: Bearer {self.token}"
        if self.user and self.password:
            basic = base64.b64encode(f"{self.user}:{self.password}".encode()).decode("ascii")
            return f"Authorization: Basic {basic}"
        return None

    def __repr__(self) -> str:
        return (
            f"GitAuth(user={self.user!r}, password={_mask(self.password)}, "
            f"token={_mask(self.token)}, insecure={self.insecure!r})"
        )


@dataclass(frozen=True, slots=True)
class CommitIdentity:
    """Author identity written into the store's local git config."""

    name: str = DEFAULT_COMMIT_NAME
    email: str = DEFAULT_COMMIT_EMAIL

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("commit identity name cannot be empty")
        if not self.email.strip():
            raise ValueError("commit identity email cannot be empty")

    def pair(self) -> tuple[str, str]:
        return (self.name, self.email)


def _mask(secret: str | None) -> str:
    return "None" if secret is None else "'***'"


__all__ = ["CommitIdentity", "GitAuth"]
