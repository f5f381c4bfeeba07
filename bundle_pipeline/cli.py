"""
Bundle Pipeline CLI
===================
Runs pipeline operations from JSON job files using Typer + Rich.

Job files hold operator-supplied wallet secrets; they are read once and
never echoed.

Commands:
    bundle-pipeline distribute JOB.json [--dry-run]
    bundle-pipeline mix JOB.json [--dry-run]
    bundle-pipeline create JOB.json [--dry-run]
    bundle-pipeline consolidate JOB.json [--dry-run]
    bundle-pipeline validate KIND JOB.json

Job file shapes (camelCase keys accepted):
    distribute / mix: {"sender": {...}, "recipients": [{address, privateKey, amount}],
                       "baseCurrency": "SOL", "senderBalance": 2.5}
    create:           {"wallets": [...], "config": {platform, token, ...},
                       "balances": {"<address>": 1.0}}
    consolidate:      {"sources": [...], "receiver": {...}, "percentage": 50,
                       "sourceBalances": {"<address>": 1.0}}
"""

import asyncio
import json
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Type, TypeVar

import typer
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bundle_pipeline import __version__
from bundle_pipeline.config.constants import get_base_currency
from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.operations.facade import BundlePipeline
from bundle_pipeline.operations.models import CreateConfig, FundedWallet, Wallet
from bundle_pipeline.operations.validation import (
    ValidationResult,
    validate_consolidation_inputs,
    validate_create_inputs,
    validate_distribution_inputs,
    validate_mixing_inputs,
)
from bundle_pipeline.shared.execution.execution_result import OperationResult, PlanMode
from bundle_pipeline.shared.system.logging import Logger

app = typer.Typer(
    name="bundle-pipeline",
    help="Bundle Pipeline - Solana transaction bundle orchestration",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

J = TypeVar("J", bound=BaseModel)


# ═══════════════════════════════════════════════════════════════════════════════
# JOB FILES
# ═══════════════════════════════════════════════════════════════════════════════

class TransferJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: Wallet
    recipients: List[FundedWallet]
    base_currency: str = Field(default="SOL", alias="baseCurrency")
    sender_balance: Optional[float] = Field(default=None, alias="senderBalance")


class CreateJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallets: List[FundedWallet]
    config: CreateConfig
    balances: Optional[Dict[str, float]] = None


class ConsolidateJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sources: List[Wallet]
    receiver: Wallet
    percentage: float
    source_balances: Optional[Dict[str, float]] = Field(default=None, alias="sourceBalances")


class JobKind(str, Enum):
    DISTRIBUTE = "distribute"
    MIX = "mix"
    CREATE = "create"
    CONSOLIDATE = "consolidate"


def _load_job(path: Path, model: Type[J]) -> J:
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except FileNotFoundError:
        console.print(f"[bold red]❌ Job file not found: {path}[/bold red]")
    except json.JSONDecodeError as e:
        console.print(f"[bold red]❌ {path} is not valid JSON: {e.msg} (line {e.lineno})[/bold red]")
    except ValidationError as e:
        console.print(f"[bold red]❌ Invalid job file {path}:[/bold red]\n{e}")
    raise typer.Exit(2)


def _validate(kind: JobKind, job: BaseModel) -> Optional[ValidationResult]:
    """Run the pure pre-check for `kind`; None when the job carries no balances."""
    if kind in (JobKind.DISTRIBUTE, JobKind.MIX):
        if job.sender_balance is None:
            return None
        currency = get_base_currency(job.base_currency)
        symbol = currency.symbol if currency else job.base_currency
        check = validate_distribution_inputs if kind == JobKind.DISTRIBUTE else validate_mixing_inputs
        return check(job.sender, job.recipients, job.sender_balance, symbol)

    if kind == JobKind.CREATE:
        if job.balances is None:
            return None
        return validate_create_inputs(job.wallets, job.config, job.balances)

    return validate_consolidation_inputs(job.sources, job.receiver, job.percentage, job.source_balances)


def _check_or_exit(kind: JobKind, job: BaseModel) -> None:
    result = _validate(kind, job)
    if result is None:
        console.print("[yellow]⚠️  No balances in job file; skipping balance checks[/yellow]")
        return
    if not result.valid:
        console.print(f"[bold red]❌ Validation failed: {result.error}[/bold red]")
        raise typer.Exit(1)
    console.print("[green]✅ Inputs valid[/green]")


# ═══════════════════════════════════════════════════════════════════════════════
# OUTPUT
# ═══════════════════════════════════════════════════════════════════════════════

def _render(title: str, result: OperationResult) -> None:
    table = Table(title=title, show_lines=False)
    table.add_column("Call", justify="right")
    table.add_column("Mode")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Relay ID")
    table.add_column("Error", overflow="fold")

    for call_index, plan in enumerate(result.results, 1):
        if plan.mode == PlanMode.STAGED:
            rows = [(s.stage_name, s.success, s.relay_id, s.error) for s in plan.stage_results]
        else:
            rows = [(f"bundle {b.bundle_index}", b.success, b.relay_id, b.error) for b in plan.bundle_results]

        for step, ok, relay_id, error in rows:
            table.add_row(
                str(call_index),
                plan.mode.value,
                step,
                "[green]OK[/green]" if ok else "[red]FAILED[/red]",
                relay_id or "-",
                error or "",
            )

    console.print(table)
    if result.success:
        console.print(Panel.fit("[bold green]✅ Success[/bold green]", border_style="green"))
    else:
        kind = result.error_kind.value if result.error_kind else "UNKNOWN"
        console.print(Panel.fit(f"[bold red]❌ {kind}[/bold red]\n{result.error}", border_style="red"))


def _pipeline(env_file: Optional[Path]) -> BundlePipeline:
    config = PipelineConfig.from_env(str(env_file) if env_file else None)
    Logger.info(f"[CLI] Preparer: {config.preparer_url} | Relay: {config.relay_url}")
    return BundlePipeline(config)


def _finish(title: str, result: OperationResult) -> None:
    _render(title, result)
    if not result.success:
        raise typer.Exit(1)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

JOB_ARGUMENT = typer.Argument(..., help="Path to the JSON job file")
DRY_RUN_OPTION = typer.Option(False, "--dry-run", help="Validate the job and exit without sending")
ENV_FILE_OPTION = typer.Option(None, "--env-file", help="Load settings from this .env file")


@app.command()
def distribute(
    job_file: Path = JOB_ARGUMENT,
    dry_run: bool = DRY_RUN_OPTION,
    env_file: Optional[Path] = ENV_FILE_OPTION,
):
    """
    Distribute base currency from one sender to many recipients.

    \b
    Examples:
        bundle-pipeline distribute jobs/distribute.json
        bundle-pipeline distribute jobs/distribute.json --dry-run
    """
    job = _load_job(job_file, TransferJob)
    console.print(Panel.fit(
        f"[bold cyan]💸 Distribute[/bold cyan]\n"
        f"{len(job.recipients)} recipient(s) | {job.base_currency}",
        border_style="cyan",
    ))
    _check_or_exit(JobKind.DISTRIBUTE, job)
    if dry_run:
        return

    result = asyncio.run(
        _pipeline(env_file).execute_distribute(job.sender, job.recipients, job.base_currency)
    )
    _finish("Distribute", result)


@app.command()
def mix(
    job_file: Path = JOB_ARGUMENT,
    dry_run: bool = DRY_RUN_OPTION,
    env_file: Optional[Path] = ENV_FILE_OPTION,
):
    """
    Mix base currency to each recipient, one recipient per preparer call.
    """
    job = _load_job(job_file, TransferJob)
    console.print(Panel.fit(
        f"[bold magenta]🌀 Mix[/bold magenta]\n"
        f"{len(job.recipients)} recipient(s) | {job.base_currency}",
        border_style="magenta",
    ))
    _check_or_exit(JobKind.MIX, job)
    if dry_run:
        return

    result = asyncio.run(
        _pipeline(env_file).execute_mix(job.sender, job.recipients, job.base_currency)
    )
    _finish("Mix", result)


@app.command()
def create(
    job_file: Path = JOB_ARGUMENT,
    dry_run: bool = DRY_RUN_OPTION,
    env_file: Optional[Path] = ENV_FILE_OPTION,
):
    """
    Deploy a token (pumpfun, bonk, meteoraDBC or meteoraCPAMM).
    """
    job = _load_job(job_file, CreateJob)
    console.print(Panel.fit(
        f"[bold yellow]🪙 Create[/bold yellow]\n"
        f"{job.config.token.symbol or '?'} on {job.config.platform} | {len(job.wallets)} wallet(s)",
        border_style="yellow",
    ))
    _check_or_exit(JobKind.CREATE, job)
    if dry_run:
        return

    result = asyncio.run(_pipeline(env_file).execute_create(job.wallets, job.config))
    if result.mint_address:
        console.print(f"Mint: [bold]{result.mint_address}[/bold]")
    if result.pool_id:
        console.print(f"Pool: {result.pool_id}")
    if result.lookup_table_address:
        console.print(f"Lookup table: {result.lookup_table_address}")
    _finish("Create", result)


@app.command()
def consolidate(
    job_file: Path = JOB_ARGUMENT,
    dry_run: bool = DRY_RUN_OPTION,
    env_file: Optional[Path] = ENV_FILE_OPTION,
):
    """
    Sweep a percentage of every source wallet into one receiver.
    """
    job = _load_job(job_file, ConsolidateJob)
    console.print(Panel.fit(
        f"[bold blue]🧲 Consolidate[/bold blue]\n"
        f"{len(job.sources)} source(s) | {job.percentage}%",
        border_style="blue",
    ))
    _check_or_exit(JobKind.CONSOLIDATE, job)
    if dry_run:
        return

    result = asyncio.run(
        _pipeline(env_file).execute_consolidate(job.sources, job.receiver, job.percentage)
    )
    _finish("Consolidate", result)


@app.command()
def validate(
    kind: JobKind = typer.Argument(..., help="Job kind"),
    job_file: Path = JOB_ARGUMENT,
):
    """
    Validate a job file without contacting the preparer or relay.
    """
    model = {
        JobKind.DISTRIBUTE: TransferJob,
        JobKind.MIX: TransferJob,
        JobKind.CREATE: CreateJob,
        JobKind.CONSOLIDATE: ConsolidateJob,
    }[kind]
    _check_or_exit(kind, _load_job(job_file, model))


@app.command()
def version():
    """Show version."""
    console.print(f"bundle-pipeline {__version__}")


if __name__ == "__main__":
    app()
