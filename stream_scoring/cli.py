#!filepath: stream_scoring/cli.py
from typing import Optional

import typer
from rich import print
from rich.table import Table

from stream_scoring import AppConfig, init_logging
from stream_scoring.config.scoring_config import ModelSource, ScoringConfig
from stream_scoring.engines.prediction_formatter import output_fields
from stream_scoring.frame import read_table, score_frame, write_table
from stream_scoring.model.artifact import load_model
from stream_scoring.observability.instrumentation import Instrumentation
from stream_scoring.step.scoring_step import ScoringStep

app = typer.Typer(help="Stream Scoring CLI")


@app.command()
def version():
    print("v0.1.0")


@app.command()
def score(
    input: str = typer.Argument(..., help="CSV or parquet file with the rows to score"),
    output: str = typer.Option(..., "--output", "-o", help="CSV or parquet destination"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="model artifact (default model with --model-field)"),
    model_field: Optional[str] = typer.Option(None, "--model-field", help="read the model path from this column"),
    cache: bool = typer.Option(False, "--cache", help="cache models loaded from the model field"),
    probabilities: bool = typer.Option(False, "--probabilities", help="emit the full distribution"),
    batch_size: Optional[str] = typer.Option(None, "--batch-size"),
    update: bool = typer.Option(False, "--update", help="update the model incrementally"),
    save_updated: Optional[str] = typer.Option(None, "--save-updated", help="where to save the updated model"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML config, command line options win"),
):
    """
    Score every row of INPUT and write it with the prediction fields appended.
    """
    if config is not None:
        app_cfg = AppConfig.load(config)
        init_logging(app_cfg.log)
        base = app_cfg.scoring.model_dump()
    else:
        base = {}

    overrides = {
        "model_path": model,
        "field_name_for_model_path": model_field,
        "batch_size": batch_size,
        "saved_model_path": save_updated,
    }
    cfg_raw = {**base, **{k: v for k, v in overrides.items() if v is not None}}
    cfg_raw["cache_loaded_models"] = cache or base.get("cache_loaded_models", False)
    cfg_raw["output_probabilities"] = probabilities or base.get("output_probabilities", False)
    cfg_raw["update_model_incrementally"] = update or base.get("update_model_incrementally", False)
    if model_field:
        cfg_raw["model_source"] = ModelSource.PER_ROW_FIELD

    cfg = ScoringConfig(**cfg_raw)
    inst = Instrumentation(enabled=True)
    step = ScoringStep(cfg, inst=inst)

    df = read_table(input)
    print(f"[green]Scoring {len(df)} rows from {input}[/green]")
    scored = score_frame(df, step)
    write_table(scored, output)
    print(f"[green]Wrote {len(scored)} rows to {output}[/green]")


@app.command()
def inspect(
    model: str = typer.Argument(..., help="model artifact"),
    probabilities: bool = typer.Option(False, "--probabilities"),
):
    """
    Show the attributes a model expects and the fields it appends.
    """
    scoring_model = load_model(model)
    print(scoring_model.describe())

    table = Table(title="output fields")
    table.add_column("name")
    table.add_column("kind")
    for f in output_fields(scoring_model, probabilities):
        table.add_row(f.name, f.kind.value)
    print(table)


if __name__ == "__main__":
    app()

# python -m stream_scoring.cli score rows.csv -m model.joblib -o scored.csv
