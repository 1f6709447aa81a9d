"""Unit tests for remote authentication headers and commit identity."""

from __future__ import annotations

import base64

import pytest

from repodb.store.auth import CommitIdentity, GitAuth

pytestmark = pytest.mark.unit


def test_token_wins_over_basic_credentials() -> None:
    auth = GitAuth(user="u", password="p", token="tok")
    assert auth.auth_header() == "Authorization: Bearer tok"


def test_basic_header_encodes_user_and_password() -> None:
    header = GitAuth(user="alice", password="s3cret:x").auth_header()

    assert header is not None
    prefix = "Authorization: Basic "
    assert header.startswith(prefix)
    assert base64.b64decode(header[len(prefix) :]).decode() == "alice:s3cret:x"


@pytest.mark.parametrize(
    "auth",
    [GitAuth(), GitAuth(user="alice"), GitAuth(password="p"), GitAuth(token="")],
)
def test_no_header_without_complete_credentials(auth: GitAuth) -> None:
    assert auth.auth_header() is None


def test_repr_masks_secrets() -> None:
    rendered = repr(GitAuth(user="alice", password="hunter2", token="tok-123"))

    assert "hunter2" not in rendered
    assert "tok-123" not in rendered
    assert "alice" in rendered


def test_commit_identity() -> None:
    assert CommitIdentity("Bot", "bot@example.com").pair() == ("Bot", "bot@example.com")
    assert CommitIdentity().pair()[0]
    with pytest.raises(ValueError):
        CommitIdentity(name=" ")
    with pytest.raises(ValueError):
        CommitIdentity(email="")
