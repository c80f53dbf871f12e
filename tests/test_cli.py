"""CLI behavior in mock mode."""

from __future__ import annotations

import pytest

from fedvlm import cli
from fedvlm.errors import TransportError
from fedvlm.query import gene_key
from tests.conftest import FakeTransport

pytestmark = pytest.mark.unit


def test_search_variant_with_mock_prints_rows(capsys) -> None:
    assert cli.main(["search", "13-42298583-A-G", "--mock"]) == 0

    out = capsys.readouterr().out
    assert "Variant 13-42298583-A-G" in out
    assert "gnomAD (hosted by Broad Institute)" in out
    assert "- AC: 456" in out
    assert "- Consequence: Missense variant" in out
    assert "- Associations: Epilepsy" in out


def test_exclude_hides_a_node(capsys) -> None:
    assert cli.main(["search", "13-42298583-A-G", "--mock", "--exclude", "3"]) == 0

    out = capsys.readouterr().out
    assert "BipEx" not in out
    assert "Epi25" in out


def test_excluding_every_answering_node_prints_hint(capsys) -> None:
    argv = ["search", "13-42298583-A-G", "--mock"]
    for node_id in ("1", "3", "4"):
        argv += ["--exclude", node_id]

    assert cli.main(argv) == 0
    assert "No unfiltered results" in capsys.readouterr().out


def test_gene_search_prints_tracks(capsys) -> None:
    assert cli.main(["search", "brca1", "--mock"]) == 0

    out = capsys.readouterr().out
    assert "Gene BRCA1" in out
    assert "- Consequence: pLoF" in out
    assert "BRCA1 track (Schema)" in out
    assert "- Span: 43044295-43125483" in out
    assert "- Coding exons: 3" in out


def test_unknown_term_in_mock_mode_is_not_found(capsys) -> None:
    assert cli.main(["search", "NOSUCHGENE", "--mock"]) == 0
    assert "No gene with symbol NOSUCHGENE was found." in capsys.readouterr().out


def test_blank_term_exits_with_usage_code(capsys) -> None:
    assert cli.main(["search", "   ", "--mock"]) == 2
    assert "empty" in capsys.readouterr().err


def test_bad_endpoint_exits_with_configuration_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["search", "BRCA1", "--variant-endpoint", "ftp://nope"])

    assert exc_info.value.code == 2
    err = capsys.readouterr().err
    assert "Configuration error" in err
    assert "Hint:" in err


def test_transport_failure_returns_nonzero(monkeypatch, capsys) -> None:
    failing = FakeTransport(
        payloads={gene_key("BRCA1"): TransportError("down", status_code=503)}
    )
    monkeypatch.setattr(cli, "build_transport", lambda config: failing)

    assert cli.main(["search", "BRCA1"]) == 1
    assert "(status 503), please try again later." in capsys.readouterr().out


def test_nodes_lists_the_registry(capsys) -> None:
    assert cli.main(["nodes"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "1\tgnomAD (Broad Institute)"
    assert len(lines) == 5


def test_subcommand_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
