"""Console rendering for batch runs (rich)."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sealbatch import __version__
from sealbatch.models import (
    AllowlistRecord,
    BatchReport,
    SubscriptionRecord,
    WalletReport,
    WorkflowKind,
)
from sealbatch.proxy.manager import ProxyRotator

console = Console()


def print_banner(proxy_rotator: ProxyRotator, wallet_count: int) -> None:
    stats = proxy_rotator.get_stats()
    body = (
        f"[bold white]Seal batch runner[/] [magenta]v{__version__}[/]\n"
        f"Wallets: [cyan]{wallet_count}[/]   "
        f"Proxies: [cyan]{stats['total']}[/] ({stats['authenticated']} authenticated)"
    )
    console.print(Panel(body, box=box.ROUNDED, expand=False))


def _allowlist_table(records: list[AllowlistRecord]) -> Table:
    table = Table(title="Allowlist results", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Allowlist ID", style="yellow")
    table.add_column("Entry ID", style="yellow")
    table.add_column("Blob ID", style="yellow")
    for idx, record in enumerate(records, start=1):
        table.add_row(str(idx), record.allowlist_id, record.entry_id, record.blob_id)
    return table


def _service_table(records: list[SubscriptionRecord]) -> Table:
    table = Table(title="Service results", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Shared ID", style="yellow")
    table.add_column("Entry ID", style="yellow")
    table.add_column("Blob ID", style="yellow")
    for idx, record in enumerate(records, start=1):
        table.add_row(str(idx), record.shared_id, record.entry_id, record.blob_id)
    return table


def print_wallet_report(wallet: WalletReport) -> None:
    """Render one wallet's records and errors."""
    console.rule(f"[bold]{escape(wallet.label)}")
    if wallet.error:
        console.print(f"[red]✗ {escape(wallet.error)}[/]")
        return

    for kind, result in wallet.results.items():
        if result.records:
            if kind is WorkflowKind.ALLOWLIST:
                console.print(_allowlist_table(result.records))  # type: ignore[arg-type]
            else:
                console.print(_service_table(result.records))  # type: ignore[arg-type]
        if result.error:
            console.print(f"[red]✗ {kind.value} workflow failed: {escape(result.error)}[/]")


def print_summary(report: BatchReport) -> None:
    """Render every wallet and the aggregate outcome."""
    for wallet in report.wallets:
        print_wallet_report(wallet)

    table = Table(title="Summary", box=box.ROUNDED)
    table.add_column("Wallets", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    failed = len(report.failed_wallets)
    table.add_row(str(len(report.wallets)), str(len(report.wallets) - failed), str(failed))
    console.print(table)

    if report.succeeded:
        console.print("[bold green]✅ All tasks completed successfully![/]")
    else:
        console.print(f"[bold red]❌ {failed} wallet(s) failed[/]")
        for wallet in report.failed_wallets:
            console.print(f"  [red]•[/] {escape(wallet.label)}")
