"""Tests for console formatting and the lotto-report command."""

from pathlib import Path

import pandas as pd
import pytest

from lotto_core.cli import main
from lotto_core.exceptions import FactStoreError
from lotto_core.facts import FrameFactStore
from lotto_core.formatters import (
    format_hierarchy_for_console,
    format_rollup_for_console,
    sanitize_for_console,
)
from lotto_core.periods import resolve_period
from lotto_core.rollup import ROLLUP_COLUMNS, NodeMetrics, RollupEngine, RollupResult
from lotto_core.views import CurrentUser, compute_hierarchy_root

from conftest import NOW

JANUARY = ["--from", "2025-01-01", "--to", "2025-01-31"]


@pytest.fixture
def data_root(
    tmp_path: Path,
    nodes_frame: pd.DataFrame,
    bets_frame: pd.DataFrame,
    winners_frame: pd.DataFrame,
    daily_results_frame: pd.DataFrame,
) -> Path:
    nodes_frame.to_csv(tmp_path / "nodes.csv", index=False)
    bets_frame.to_csv(tmp_path / "bets.csv", index=False)
    winners_frame.to_csv(tmp_path / "winners.csv", index=False)
    daily_results_frame.to_csv(tmp_path / "daily_results.csv", index=False)
    return tmp_path


def test_sanitize_for_console() -> None:
    """Test that accents are dropped and other non-ASCII removed."""
    assert sanitize_for_console("León → Delfín") == "Leon  Delfin"


def test_format_rollup(engine: RollupEngine) -> None:
    """Test the indented rollup listing with totals."""
    month = resolve_period("month", now=NOW)
    text = format_rollup_for_console(engine.rollup(None, month))
    lines = text.splitlines()

    assert lines[0] == f"Reporte de ventas - {month}"
    assert "Admin (admin)" in lines
    assert "  Comercial Uno (comercializadora)" in lines
    # Parents are printed before their children
    assert lines.index("  Comercial Uno (comercializadora)") < lines.index(
        "    Sub Uno (subdistribuidor)"
    )
    assert (
        "    ventas Bs. 380,00 | premios Bs. 320,00 | comision Bs. 19,00 | balance Bs. 41,00"
        in lines
    )
    assert lines[-2].startswith("Total: ventas Bs. 380,00")
    assert lines[-1] == "Resultados: 3 (2 con ganadores)"


def test_format_rollup_incomplete(nodes_frame: pd.DataFrame, bets_frame: pd.DataFrame) -> None:
    """Test that a partial rollup is flagged."""

    class NoWinnersStore(FrameFactStore):
        def list_winners(self, scope, interval):
            raise FactStoreError("winners table unreachable", stream="winners")

    engine = RollupEngine(NoWinnersStore(bets=bets_frame, nodes=nodes_frame))
    result = engine.rollup("c1", resolve_period("month", now=NOW), allow_partial=True)

    assert "INCOMPLETO: faltan datos de winners" in format_rollup_for_console(result)


def test_format_rollup_empty() -> None:
    """Test the message for an empty rollup."""
    interval = resolve_period("today", now=NOW)
    result = RollupResult(
        frame=pd.DataFrame(columns=ROLLUP_COLUMNS),
        totals=NodeMetrics(node_id=None),
        interval=interval,
    )

    assert format_rollup_for_console(result) == f"No data for {interval}."


def test_format_hierarchy(engine: RollupEngine) -> None:
    """Test the top-level table of a view."""
    month = resolve_period("month", now=NOW)
    text = format_hierarchy_for_console(compute_hierarchy_root(engine, CurrentUser("adm"), month))

    assert text.splitlines()[0] == "Vista jerarquica (admin)"
    assert "+ Comercial Uno (comercializadora)" in text
    assert "- Comercial Dos (comercializadora)" in text
    assert "Rango   ventas Bs. 380,00" in text
    assert text.endswith("Resultados: 3 (2 con ganadores)")


def test_format_hierarchy_without_entities(engine: RollupEngine) -> None:
    """Test the message for a user who sees nothing."""
    root = compute_hierarchy_root(
        engine, CurrentUser("nobody", "agencia"), resolve_period("today", now=NOW)
    )

    assert format_hierarchy_for_console(root) == "No entities to show for agencia."


def test_cli_hierarchy_view(data_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the default view for an admin over January."""
    code = main(["--data-root", str(data_root), *JANUARY])

    out = capsys.readouterr().out
    assert code == 0
    assert "Vista jerarquica (admin)" in out
    assert "Rango   ventas Bs. 380,00" in out
    assert "Resultados: 3 (2 con ganadores)" in out


def test_cli_reseller_view(data_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the view rendered for a comercializadora."""
    code = main(
        ["--data-root", str(data_root), "--user-id", "c1", "--user-type", "comercializadora", *JANUARY]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "+ Sub Uno (subdistribuidor)" in out
    assert "Comercial Dos" not in out


def test_cli_flat_rollup_to_csv(data_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the flat rollup printed and written to CSV."""
    output = tmp_path / "c1.csv"
    code = main(
        [
            "--data-root",
            str(data_root),
            "--flat",
            "--period",
            "custom",
            "--node",
            "c1",
            "-o",
            str(output),
            *JANUARY,
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Reporte de ventas - custom [2025-01-01 .. 2025-01-31]")
    frame = pd.read_csv(output, index_col="node_id", dtype={"node_id": str, "parent_id": str})
    assert list(frame.columns) == ROLLUP_COLUMNS
    assert frame.index.tolist() == ["t1", "t2", "a1", "s1", "t3", "a2", "c1"]
    assert frame.loc["c1", "sales"] == 380.0
    assert frame.loc["c1", "profit_share"] == 20.5


def test_cli_flat_range_implies_custom(data_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test that --from/--to select a custom range without --period."""
    code = main(["--data-root", str(data_root), "--flat", "--node", "c1", *JANUARY])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Reporte de ventas - custom [2025-01-01 .. 2025-01-31]")
    assert "Total: ventas Bs. 380,00" in out


@pytest.mark.parametrize(
    "argv",
    [
        # range ends before it starts
        ["--from", "2025-01-31", "--to", "2025-01-01"],
        # not a calendar date
        ["--from", "2025-02-30"],
        ["--flat", "--from", "2025-01-01", "--to", "garbage"],
        # unknown node
        ["--flat", "--period", "custom", "--node", "zz", *JANUARY],
    ],
)
def test_cli_errors_exit_2(
    data_root: Path, argv: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    """Test that domain errors print a message and exit with 2."""
    code = main(["--data-root", str(data_root), *argv])

    assert code == 2
    assert "ERROR: " in capsys.readouterr().err


def test_cli_missing_data_root(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test that a data root without facts exits with 2."""
    assert main(["--data-root", str(tmp_path / "nowhere")]) == 2
    assert "bets" in capsys.readouterr().err
