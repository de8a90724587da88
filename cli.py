#!/usr/bin/env python3
"""CLI interface for the Smart Forward Agent."""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from smart_forward import (
    ForwardingLog,
    KeywordExtractor,
    SmartForwardingOrchestrator,
    SummarizationPipeline,
    SummarizationStyle,
    build_generator,
    load_config,
)
from smart_forward.config import parse_forwarding_destination

console = Console()

STYLE_CHOICES = [style.value for style in SummarizationStyle]


def _read_content(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, encoding="utf-8") as f:
        return f.read()


def _parse_context(pairs: tuple) -> dict:
    context = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint="--context")
        context[key.strip()] = value
    return context


@click.group()
@click.option("--config", "-c", default="config.yaml", help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config, verbose):
    """Smart Forward Agent - Summarize messages and forward them by keyword rules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command()
@click.argument("source", default="-")
@click.option("--context", "context_pairs", multiple=True, help="Template variable as key=value (repeatable)")
@click.option("--no-ai", is_flag=True, help="Skip the model and use extractive summaries only")
@click.option("--no-log", is_flag=True, help="Don't write to the forwarding log")
@click.option("--forward-to", help="Fallback destination (address, chat id or user id) when no rule matches")
@click.option(
    "--forward-type",
    type=click.Choice(["email", "telegram", "user_email", "user_telegram"]),
    default="email",
    help="Type of the --forward-to destination",
)
@click.pass_context
def process(ctx, source, context_pairs, no_ai, no_log, forward_to, forward_type):
    """Process a message from SOURCE (file path or - for stdin)."""
    config = load_config(ctx.obj["config_path"])
    context = _parse_context(context_pairs)

    default_destination = config.default_destination
    if forward_to:
        default_destination = parse_forwarding_destination(forward_to, forward_type)
        if default_destination is None:
            raise click.BadParameter(
                f"not a valid {forward_type} destination: '{forward_to}'", param_hint="--forward-to"
            )

    content = _read_content(source)

    forward_log = None if no_log else ForwardingLog(config.log_dir)
    orchestrator = SmartForwardingOrchestrator.from_config(config, use_ai=not no_ai, forward_log=forward_log)

    result = orchestrator.process_and_forward(content, config.rules, default_destination, context)

    console.print(Panel(result.summary or "[dim](no summary)[/]", title="Summary"))
    console.print(f"[bold]Keywords:[/] {', '.join(result.extracted_keywords) or '-'}")
    console.print(f"[bold]Decision:[/] {result.source}")

    if not result.success:
        console.print(f"[yellow]⚠ {result.message}[/]")
        return

    table = Table(title="Forwarding Actions")
    table.add_column("Platform", style="cyan")
    table.add_column("Recipient", style="yellow")
    table.add_column("Subject", style="white", max_width=40)
    table.add_column("Body", style="green", max_width=60)

    for action in result.forwarding_actions:
        table.add_row(action.platform, action.recipient, action.subject or "-", action.body)

    console.print(table)


@cli.command()
@click.argument("source", default="-")
@click.option("--style", "-s", type=click.Choice(STYLE_CHOICES), default="concise", help="Summary style")
@click.option("--max-length", "-n", default=100, help="Approximate summary length in words")
@click.option("--email", "as_email", is_flag=True, help="Treat SOURCE as an email and show urgency/key points")
@click.option("--no-ai", is_flag=True, help="Skip the model and use extractive summaries only")
@click.pass_context
def summarize(ctx, source, style, max_length, as_email, no_ai):
    """Summarize a message from SOURCE (file path or - for stdin)."""
    config = load_config(ctx.obj["config_path"])
    pipeline = SummarizationPipeline(
        generator=None if no_ai else build_generator(config),
        max_attempts=config.summarization.max_attempts,
        retry_backoff_sec=config.summarization.retry_backoff_sec,
    )
    content = _read_content(source)

    if not as_email:
        summary = pipeline.summarize(content, max_length, SummarizationStyle.parse(style))
        console.print(Panel(summary, title=f"Summary ({style})"))
        return

    from smart_forward.analyzer.extractive import parse_email

    email = parse_email(content)
    result = pipeline.summarize_email(email.subject, email.body, email.sender)
    console.print(Panel(result.summary, title=f"{result.subject or '(No Subject)'} - {result.sender or 'unknown'}"))
    console.print(f"[bold]Urgency:[/] {result.urgency_level.value}")
    actions = KeywordExtractor().extract_email_actions(email.subject, email.body)
    console.print(f"[bold]Actions:[/] {', '.join(actions) or '-'}")
    for point in result.key_points:
        console.print(f"  • {point}")


@cli.command()
@click.argument("source", default="-")
@click.option("--max", "max_keywords", default=10, help="Maximum number of keywords")
def keywords(source, max_keywords):
    """Show the ranked keywords of a message."""
    content = _read_content(source)
    scored = KeywordExtractor().score_keywords(content)[:max_keywords]

    if not scored:
        console.print("[dim]No recurring keywords found.[/]")
        return

    table = Table(title="Keywords")
    table.add_column("#", style="dim")
    table.add_column("Keyword", style="cyan")
    table.add_column("Score", style="green", justify="right")
    for rank, (word, score) in enumerate(scored, start=1):
        table.add_row(str(rank), word, f"{score:.2f}")
    console.print(table)


@cli.command()
@click.pass_context
def test(ctx):
    """Test configuration without processing messages."""
    config = load_config(ctx.obj["config_path"])

    console.print(Panel.fit("[bold]Configuration Test[/]", title="Test Mode"))

    console.print(f"\n[bold]Rules ({len(config.rules)}):[/]")
    for rule in sorted(config.rules, key=lambda r: r.priority, reverse=True):
        console.print(
            f"  • [{rule.priority}] {rule.description} "
            f"({rule.minimum_matches}/{len(rule.keywords)} {rule.matching_strategy}) → {rule.destination.label}"
        )
    for problem in config.skipped_rules:
        console.print(f"  [red]✗ Skipped {problem}[/]")

    default = config.default_destination.label if config.default_destination else "[yellow]NOT SET[/]"
    console.print(f"\n[bold]Default destination:[/] {default}")

    console.print("\n[bold]Text generation:[/]")
    console.print(f"  Ollama model: {config.ollama_model or '[red]NOT SET[/]'}")
    console.print(f"  Gemini API Key: {'[green]SET[/]' if config.gemini_api_key else '[red]NOT SET[/]'}")
    console.print(
        f"  Cache: {'enabled' if config.cache.enabled else 'disabled'} "
        f"({config.cache.max_entries} entries, {config.cache.ttl_hours:g}h TTL)"
    )
    console.print(
        f"  Summaries: {config.summarization.max_length} words, "
        f"{config.summarization.max_attempts} attempt(s)"
    )


@cli.command()
@click.option("--session", "-s", "session_id", help="Session to show (default: the newest)")
@click.option("--limit", "-n", default=20, help="Number of recent entries to show")
@click.option("--list", "list_only", is_flag=True, help="Only list the available sessions")
@click.pass_context
def logs(ctx, session_id, limit, list_only):
    """Show the forwarding log: sessions, stats and recent runs."""
    config = load_config(ctx.obj["config_path"])
    forward_log = ForwardingLog(config.log_dir)
    sessions = forward_log.list_sessions()

    if not sessions:
        console.print(f"[dim]No forwarding logs in {config.log_dir}[/]")
        return

    if list_only:
        table = Table(title="Sessions")
        table.add_column("Session", style="cyan")
        table.add_column("Modified", style="dim")
        table.add_column("Size", justify="right")
        for session in sessions:
            table.add_row(session["session_id"], session["modified"], str(session["size"]))
        console.print(table)
        return

    session_id = session_id or sessions[0]["session_id"]
    stats = forward_log.get_stats(session_id)
    console.print(Panel.fit(
        f"Runs: {stats['total']}  Forwarded: [green]{stats['forwarded']}[/]  "
        f"Unrouted: [yellow]{stats['unrouted']}[/]  Actions: {stats['actions']}",
        title=f"Session {session_id}",
    ))
    for rule, count in sorted(stats["by_rule"].items(), key=lambda item: -item[1]):
        console.print(f"  • {rule}: {count}")
    for platform, count in sorted(stats["by_platform"].items()):
        console.print(f"  • {platform} actions: {count}")

    table = Table(title="Recent Runs")
    table.add_column("Time", style="dim")
    table.add_column("Decision", style="cyan", max_width=40)
    table.add_column("Destination", style="yellow")
    table.add_column("Result")
    for entry in forward_log.get_logs(session_id, limit=limit):
        status = "[green]✓[/]" if entry["success"] else f"[yellow]{entry['message']}[/]"
        table.add_row(
            entry["timestamp"][:19],
            entry["matched_rule"] or ("(default)" if entry["destination"] else "-"),
            entry["destination"] or "-",
            status,
        )
    console.print(table)


if __name__ == "__main__":
    cli()
