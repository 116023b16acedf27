"""Command-line entry point.

``sealbatch run`` performs one batch run (interactively unless ``--scheduled``
is given); ``sealbatch schedule`` runs batches on the configured cron
schedule with process-level retries.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from rich.markup import escape
from rich.prompt import IntPrompt, Prompt

from sealbatch import __version__
from sealbatch.config.schedule import load_schedule_config
from sealbatch.config.settings import BatchSettings
from sealbatch.display import console, print_banner, print_summary
from sealbatch.errors import NoCredentialsError, SealBatchError
from sealbatch.logging_config import configure_logging, register_public_ids
from sealbatch.models import RunOutcome, TaskSelection, WorkflowParams
from sealbatch.scheduler.driver import RetryDriver
from sealbatch.scheduler.lock import RunLock
from sealbatch.services.runner import BatchRunner, RunOptions, load_all_credentials

logger = logging.getLogger(__name__)

_TASK_CHOICES = {"1": TaskSelection.ALLOWLIST, "2": TaskSelection.SUBSCRIPTION, "3": TaskSelection.BOTH}


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def split_addresses(values: list[str] | None) -> list[str]:
    """Flatten repeated and comma-separated address arguments."""
    addresses: list[str] = []
    for value in values or []:
        addresses.extend(part.strip() for part in value.split(",") if part.strip())
    register_public_ids(*addresses)
    return addresses


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sealbatch",
        description="Batch Seal allow-list and subscription workflows across many wallets.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="override SEALBATCH_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="run one batch over every wallet")
    run.add_argument(
        "--scheduled",
        action="store_true",
        help="non-interactive mode: run both workflows with the default image",
    )
    run.add_argument(
        "--retry-failed",
        action="store_true",
        help="only process wallets listed in the failed-wallets file",
    )
    run.add_argument("--task", choices=[s.value for s in TaskSelection])
    image = run.add_mutually_exclusive_group()
    image.add_argument("--image-url", help="download the payload from this URL")
    image.add_argument("--image-file", help="read the payload from this file")
    image.add_argument(
        "--random-image", action="store_true", help="pick a random image service URL"
    )
    run.add_argument("--count", type=_positive_int, help="iterations per workflow and wallet")
    run.add_argument(
        "--extra-address",
        action="append",
        metavar="ADDRESS",
        help="additional allow-list member (repeatable or comma-separated)",
    )

    schedule = subparsers.add_parser("schedule", help="run batches on the configured schedule")
    schedule.add_argument(
        "--run-now", action="store_true", help="fire once immediately before waiting"
    )
    return parser


# ---------------------------------------------------------------------------
# Option resolution
# ---------------------------------------------------------------------------


def resolve_run_options(
    args: argparse.Namespace, settings: BatchSettings, interactive: bool = True
) -> RunOptions:
    """Build run options from flags, prompting for whatever is missing.

    In scheduled mode (or with ``interactive=False``) nothing is prompted:
    both workflows, the default image URL and one iteration are used.
    """
    prompt = interactive and not args.scheduled

    if args.task:
        selection = TaskSelection(args.task)
    elif prompt:
        console.print("\n[bold]Available actions[/]")
        console.print("  [green][1][/] Create allowlist and publish blob")
        console.print("  [green][2][/] Create service subscription and publish blob")
        console.print("  [green][3][/] Run both tasks")
        selection = _TASK_CHOICES[Prompt.ask("Select an action", choices=list(_TASK_CHOICES))]
    else:
        selection = TaskSelection.BOTH

    params = WorkflowParams()
    if args.image_url:
        params.image_source = args.image_url
    elif args.image_file:
        params.image_source = Path(args.image_file)
    elif args.random_image:
        params.random_image = True
    elif prompt:
        _prompt_image(params, settings)
    else:
        params.image_source = settings.default_image_url

    if args.count:
        params.count = args.count
    elif prompt:
        params.count = max(IntPrompt.ask("Number of tasks per wallet", default=1), 1)

    params.extra_addresses = split_addresses(args.extra_address)
    if not params.extra_addresses and prompt and selection is not TaskSelection.SUBSCRIPTION:
        answer = Prompt.ask(
            "Additional allow-list addresses (comma-separated, empty for none)", default=""
        )
        params.extra_addresses = split_addresses([answer])

    return RunOptions(selection=selection, params=params)


def _prompt_image(params: WorkflowParams, settings: BatchSettings) -> None:
    console.print("\n[bold]Image source[/]")
    console.print("  [green][1][/] URL")
    console.print(f"  [green][2][/] Local file ({settings.local_image_path})")
    console.print("  [green][3][/] Random image")
    choice = Prompt.ask("Choose image source", choices=["1", "2", "3"], default="1")
    if choice == "1":
        params.image_source = Prompt.ask("Image URL", default=settings.default_image_url)
    elif choice == "2":
        params.image_source = Path(settings.local_image_path)
    else:
        params.random_image = True


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _report(outcome: RunOutcome) -> None:
    if outcome.report is not None:
        print_summary(outcome.report)
    elif outcome.message:
        console.print(f"[bold red]❌ {escape(outcome.message)}[/]")


async def run_command(args: argparse.Namespace, settings: BatchSettings) -> int:
    with RunLock(settings.lock_file):
        runner = BatchRunner(settings)

        only_identities: set[str] | None = None
        if args.retry_failed:
            only_identities = runner.failed_store.load()
            if not only_identities:
                console.print("[green]No failed wallets to retry.[/]")
                return 0
            logger.info("Retrying %d failed wallet(s)", len(only_identities))

        try:
            credentials = load_all_credentials(settings)
        except NoCredentialsError:
            # the runner reports the missing wallets as a fatal outcome
            credentials = []
        print_banner(runner.proxy_rotator, len(credentials))

        options = resolve_run_options(args, settings)
        outcome = await runner.run(options, only_identities, credentials=credentials)
        _report(outcome)
        return outcome.exit_code


async def schedule_command(args: argparse.Namespace, settings: BatchSettings) -> int:
    config = load_schedule_config(settings.schedule_config_file)
    runner = BatchRunner(settings)
    options = RunOptions(params=WorkflowParams(image_source=settings.default_image_url))

    async def run_once(only_identities: set[str] | None) -> RunOutcome:
        outcome = await runner.run(options, only_identities)
        _report(outcome)
        return outcome

    driver = RetryDriver(
        run=run_once,
        config=config,
        failed_store=runner.failed_store,
        lock=RunLock(settings.lock_file),
    )
    console.print(
        f"[bold]Scheduler started[/] (cron: [cyan]{config.schedule}[/], "
        f"max retries: {config.max_retries}, retry delay: {config.retry_delay_seconds:.0f}s)"
    )
    await driver.serve_forever(run_now=args.run_now)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = BatchSettings()
    configure_logging(args.log_level or settings.log_level, json_format=settings.log_json)

    command = run_command if args.command == "run" else schedule_command
    try:
        return asyncio.run(command(args, settings))
    except SealBatchError as exc:
        logger.error("%s", exc.message)
        console.print(f"[bold red]❌ {escape(exc.message)}[/]")
        return exc.exit_code
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/]")
        return 130
