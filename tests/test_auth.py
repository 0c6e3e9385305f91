import pytest

from auth import bearer_token, issue_token, read_token, resolve_owner
from config import Settings


def make_settings(**overrides) -> Settings:
    return Settings(database_url="sqlite://", auth_secret="secret-one", **overrides)


def test_token_round_trips_subject() -> None:
    settings = make_settings()

    assert read_token(issue_token(" user-42 ", settings), settings) == "user-42"


def test_token_signed_with_other_secret_is_rejected() -> None:
    token = issue_token("alice", make_settings())
    other = Settings(database_url="sqlite://", auth_secret="secret-two")

    assert read_token(token, other) is None


def test_garbage_and_tampered_tokens_are_rejected() -> None:
    settings = make_settings()
    token = issue_token("alice", settings)

    assert read_token("garbage", settings) is None
    assert read_token(token + "x", settings) is None


def test_issue_token_requires_subject() -> None:
    with pytest.raises(ValueError):
        issue_token("   ", make_settings())


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
        ("", None),
        (None, None),
    ],
)
def test_bearer_token_parsing(header, expected) -> None:
    assert bearer_token(header) == expected


def test_resolve_owner_prefers_valid_token_over_single_tenant() -> None:
    settings = make_settings(single_tenant_owner="household")
    header = f"Bearer {issue_token('alice', settings)}"

    assert resolve_owner(header, settings) == "alice"
    assert resolve_owner(None, settings) == "household"
    assert resolve_owner(None, make_settings()) is None
