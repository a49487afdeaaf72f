import json
import logging
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from batchembed.cli import app
from batchembed.infrastructure.embedding import EmbeddingClient
from batchembed.infrastructure.fakes import ScriptedTransport, embeddings_body, error_body, fake_vector

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    for name in ("batchembed", "batchembed.trace"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


@pytest.fixture
def fake_client(monkeypatch):
    """Route the CLI to a scripted transport and provide a key."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-cli-test-000000")
    transports: list[ScriptedTransport] = []

    def install(responder=None):
        def factory(config, session):
            transport = ScriptedTransport(responder)
            transports.append(transport)
            return EmbeddingClient(
                transport,
                batch_size=config.embedding.batch_size,
                gas=config.embedding.gas,
                trace=config.embedding.trace,
            )

        monkeypatch.setattr("batchembed.cli.create_embedding_client", factory)
        return transports

    return install


def test_embed_writes_aligned_json(tmp_path: Path, fake_client) -> None:
    fake_client()
    source = tmp_path / "inputs.txt"
    source.write_text("alpha\n\nbeta\n", encoding="utf-8")
    output = tmp_path / "out.json"

    result = runner.invoke(app, ["embed", str(source), "--output", str(output)])

    assert result.exit_code == 0, result.output
    vectors = json.loads(output.read_text(encoding="utf-8"))
    assert vectors == [fake_vector("alpha"), fake_vector("beta")]


def test_embed_reports_dropped_inputs_as_null(tmp_path: Path, fake_client) -> None:
    def responder(batch: list[str]) -> str:
        if "huge" in batch:
            return error_body("invalid_request_error")
        return embeddings_body(batch)

    fake_client(responder)
    source = tmp_path / "inputs.txt"
    source.write_text("a\nhuge\nb\n", encoding="utf-8")
    output = tmp_path / "out.json"

    result = runner.invoke(app, ["embed", str(source), "-o", str(output)])

    assert result.exit_code == 0, result.output
    vectors = json.loads(output.read_text(encoding="utf-8"))
    assert vectors[1] is None
    assert "Dropped" in result.output


def test_embed_plain_mode_fails_on_api_error(tmp_path: Path, fake_client) -> None:
    fake_client(lambda batch: error_body("server error", "overloaded"))
    source = tmp_path / "inputs.txt"
    source.write_text("a\n", encoding="utf-8")

    result = runner.invoke(app, ["embed", str(source), "--plain", "-o", str(tmp_path / "o.json")])

    assert result.exit_code == 1
    assert "overloaded" in result.output


def test_embed_gas_option_bounds_retries(tmp_path: Path, fake_client) -> None:
    transports = fake_client(lambda batch: error_body("server error"))
    source = tmp_path / "inputs.txt"
    source.write_text("a\n", encoding="utf-8")

    result = runner.invoke(app, ["embed", str(source), "--gas", "3", "-o", str(tmp_path / "o.json")])

    assert result.exit_code == 0, result.output
    assert transports[0].call_count == 3


def test_embed_trace_prints_decisions(tmp_path: Path, fake_client) -> None:
    fake_client(lambda batch: error_body("invalid_request_error"))
    source = tmp_path / "inputs.txt"
    source.write_text("a\nb\n", encoding="utf-8")

    result = runner.invoke(app, ["embed", str(source), "--trace", "-o", str(tmp_path / "o.json")])

    assert result.exit_code == 0, result.output
    assert "[trace]" in result.output
    assert "splitting into 1 + 1" in result.output


def test_embed_missing_key_exits_with_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("BATCHEMBED_EMBEDDING_API_KEY_ENV", "BATCHEMBED_TEST_ABSENT_KEY")
    monkeypatch.delenv("BATCHEMBED_TEST_ABSENT_KEY", raising=False)
    source = tmp_path / "inputs.txt"
    source.write_text("a\n", encoding="utf-8")

    result = runner.invoke(app, ["embed", str(source)])

    assert result.exit_code == 1
    assert "BATCHEMBED_TEST_ABSENT_KEY" in result.output


def test_config_shows_effective_values(monkeypatch) -> None:
    monkeypatch.setenv("BATCHEMBED_EMBEDDING_GAS", "7")

    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.output)["embedding"]["gas"] == 7


def test_config_rejects_unknown_format() -> None:
    result = runner.invoke(app, ["config", "--format", "toml"])

    assert result.exit_code == 1


def test_trace_without_output_warns_about_stdout(tmp_path: Path, fake_client) -> None:
    fake_client()
    source = tmp_path / "inputs.txt"
    source.write_text("a\n", encoding="utf-8")

    result = runner.invoke(app, ["embed", str(source), "--trace"])

    assert result.exit_code == 0, result.output
    assert "Warning:" in result.output
    assert "--output" in result.output


def test_trace_with_output_does_not_warn(tmp_path: Path, fake_client) -> None:
    fake_client()
    source = tmp_path / "inputs.txt"
    source.write_text("a\n", encoding="utf-8")

    result = runner.invoke(app, ["embed", str(source), "--trace", "-o", str(tmp_path / "o.json")])

    assert result.exit_code == 0, result.output
    assert "Warning:" not in result.output


@pytest.mark.parametrize(
    "name, content",
    [
        ("bad.yaml", "embedding: [unclosed\n"),
        ("unknown.yaml", "embedding:\n  retries: 3\n"),
    ],
)
def test_bad_config_file_exits_with_error(tmp_path: Path, name: str, content: str) -> None:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")

    result = runner.invoke(app, ["config", "--config", str(path)])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert not isinstance(result.exception, (TypeError, AttributeError))
