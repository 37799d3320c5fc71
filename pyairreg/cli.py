from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AnalysisConfig
from .exceptions import PyAirRegError
from .lm import fit
from .loader import load_prsa
from .workflow import run_analysis

app = typer.Typer(add_completion=False, help="OLS modeling of hourly PM2.5 observations.")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log search steps.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def _fmt(value) -> str:
    if isinstance(value, (float, np.floating)):
        return "NA" if np.isnan(value) else f"{value:.4g}"
    return str(value)


def _frame_table(df: pd.DataFrame, title: str) -> Table:
    table = Table(title=title)
    for i, col in enumerate(df.columns):
        table.add_column(str(col), style="cyan" if i == 0 else "green")
    for row in df.itertuples(index=False):
        table.add_row(*(_fmt(v) for v in row))
    return table


def _config(seed: int, folds: int, level: float) -> AnalysisConfig:
    return AnalysisConfig(cv_folds=folds, seed=seed, confidence_level=level)


@app.command()
def analyze(
    data: str = typer.Argument(..., help="PRSA CSV or Excel file."),
    folds: int = 10,
    seed: int = 12,
    level: float = 0.95,
):
    """Run the full screening / selection / validation workflow."""
    cfg = _config(seed, folds, level)
    try:
        report = run_analysis(load_prsa(data, cfg), cfg)
    except (PyAirRegError, ValueError, OSError) as e:
        console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    corr = report.correlations.rename('r').reset_index().rename(columns={'index': 'column'})
    console.print(_frame_table(corr, f"Correlation with {cfg.response}"))
    console.print(_frame_table(report.univariate, "Single-predictor models"))
    console.print(_frame_table(report.polynomial_round, "Polynomial round"))
    console.print(_frame_table(report.interaction_round, "Interaction round"))

    cv = Table(title=f"{cfg.cv_folds}-fold cross-validation")
    cv.add_column("Model", style="cyan")
    for name in ("RMSE", "MAE", "Rsquared"):
        cv.add_column(name, style="green")
    for res in (report.single_cv, report.full_cv, report.subset_cv):
        cv.add_row(res.formula, _fmt(res.rmse), _fmt(res.mae), _fmt(res.rsquared))
    console.print(cv)

    subsets = Table(title="Best subsets (adjusted R²)")
    subsets.add_column("Size", style="cyan")
    subsets.add_column("Terms", style="green")
    subsets.add_column("adjR²", style="green")
    subsets.add_column("Exact", style="green")
    for res in report.subsets:
        subsets.add_row(str(res.size), " + ".join(t.name for t in res.terms),
                        _fmt(res.adj_r_squared), str(res.exact))
    console.print(subsets)

    steps = Table(title="Stepwise selection")
    steps.add_column("Direction", style="cyan")
    steps.add_column("Step", style="green")
    for direction, trace in (("forward", report.forward_trace), ("backward", report.backward_trace)):
        for step in trace:
            steps.add_row(direction, str(step))
        if not trace:
            steps.add_row(direction, "(no change)")
    console.print(steps)

    console.print(_frame_table(report.grid_predictions, f"Predictions ({report.grid_model.formula})"))
    console.print(f"Chosen model: [bold]{report.chosen_model.formula}[/bold]")


@app.command("fit")
def fit_command(
    data: str = typer.Argument(..., help="PRSA CSV or Excel file."),
    terms: str = typer.Option("1", "--terms", "-t", help="Formula right-hand side, e.g. 'Iws + cbwd'."),
):
    """Fit one model and print its summary."""
    cfg = AnalysisConfig()
    try:
        model = fit(load_prsa(data, cfg), cfg.response, terms)
    except (PyAirRegError, ValueError, OSError) as e:
        console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    console.print(model.format_summary(), markup=False, highlight=False)


if __name__ == "__main__":
    app()
