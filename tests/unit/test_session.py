import pytest

from batchembed.infrastructure.embedding import (
    ConfigurationError,
    MissingCredentialError,
    SessionContext,
)


def test_explicit_key() -> None:
    session = SessionContext(api_key="sk-abcdefghijkl")

    assert session.api_key == "sk-abcdefghijkl"
    assert session.auth_headers == {"Authorization": "Bearer sk-abcdefghijkl"}


def test_empty_key_rejected() -> None:
    with pytest.raises(ConfigurationError):
        SessionContext(api_key="  ")


def test_from_env_reads_named_variable(monkeypatch) -> None:
    monkeypatch.setenv("MY_EMBED_KEY", " sk-from-env-0001 ")

    session = SessionContext.from_env("MY_EMBED_KEY")

    assert session.api_key == "sk-from-env-0001"


def test_from_env_missing_variable_fails_fast(monkeypatch) -> None:
    monkeypatch.delenv("MY_EMBED_KEY", raising=False)

    with pytest.raises(MissingCredentialError, match="MY_EMBED_KEY"):
        SessionContext.from_env("MY_EMBED_KEY")


def test_from_env_empty_variable_fails_fast(monkeypatch) -> None:
    monkeypatch.setenv("MY_EMBED_KEY", "")

    with pytest.raises(MissingCredentialError):
        SessionContext.from_env("MY_EMBED_KEY")


def test_repr_masks_key() -> None:
    session = SessionContext(api_key="sk-supersecretvalue")

    assert "supersecret" not in repr(session)
    assert "sk-...alue" in repr(session)


def test_session_is_immutable() -> None:
    session = SessionContext(api_key="sk-abcdefghijkl")

    with pytest.raises(AttributeError):
        session.api_key = "other"  # type: ignore[misc]
