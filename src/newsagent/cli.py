from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from newsagent.agent import run_agent
from newsagent.config import DEFAULT_CONFIG_PATH, load_config
from newsagent.discovery.url_classifier import URLClassifier
from newsagent.reporting.metrics import compute_run_summary, summarize_failures
from newsagent.utils import load_env_file

app = typer.Typer(help="Universal News Agent CLI")


@app.callback()
def main() -> None:
    """Universal News Agent CLI."""
    return None


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Publisher homepage URL."),
    source_type: Optional[str] = typer.Option(
        None,
        "--source-type",
        help="Discovery strategy: auto, rss, sitemap, scraping or extraction.",
    ),
    max_concurrency: Optional[int] = typer.Option(
        None, "--max-concurrency", help="Articles extracted in parallel per batch."
    ),
    max_articles: Optional[int] = typer.Option(
        None, "--max-articles", help="Cap on candidate articles extracted per stage."
    ),
    feed_url: Optional[str] = typer.Option(None, "--feed-url", help="Feed to try before the usual feed paths."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to newsagent.yaml."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
    show_failed: bool = typer.Option(False, "--show-failed", help="List rejected records and their reasons."),
    verbose: bool = typer.Option(False, "--verbose", help="Show per-stage and per-article progress logs."),
    events: Optional[Path] = typer.Option(None, "--events", help="Append JSON-lines events to this file."),
) -> None:
    """Discover and extract articles from a publisher site."""
    load_env_file(Path(".env"))
    try:
        agent_config = load_config(
            config,
            overrides={
                "url": url,
                "source_type": source_type,
                "max_concurrency": max_concurrency,
                "max_articles": max_articles,
                "feed_url": feed_url,
            },
        )
        agent_config.require_url()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    log = typer.echo if verbose else None
    result = asyncio.run(run_agent(agent_config, log=log, events_path=events))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    for article in result.accepted:
        typer.echo(f"- {article.title}")
        typer.echo(f"  {article.url}")
    if show_failed:
        for article in result.articles:
            if article.extraction_failed:
                typer.secho(
                    f"x {article.url}: {article.extraction_trace.failure_reason}",
                    fg=typer.colors.YELLOW,
                )

    summary = compute_run_summary(result)
    typer.echo(
        "Summary: "
        f"method={summary.method}, "
        f"total={summary.total}, "
        f"accepted={summary.accepted}, "
        f"failed={summary.failed}, "
        f"browser_fallbacks={summary.browser_fallbacks}"
    )
    for reason, count in sorted(summarize_failures(result.articles).items()):
        typer.echo(f"  {reason}: {count}")
    if result.error:
        typer.secho(f"Warning: {result.error}", fg=typer.colors.YELLOW)
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def classify(
    url: str = typer.Argument(..., help="URL to classify."),
    base: Optional[str] = typer.Option(None, "--base", help="Site the URL is judged against (defaults to its own host)."),
) -> None:
    """Show how a URL would be treated during discovery."""
    try:
        classifier = URLClassifier(base or url)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    result = classifier.classify(url)
    validation = classifier.validate(url)
    typer.echo(f"type={result.type.value}")
    typer.echo(f"should_crawl={result.should_crawl}")
    typer.echo(f"should_extract={result.should_extract}")
    typer.echo(f"priority={result.priority}")
    typer.echo(f"valid={validation.valid} ({validation.reason or 'ok'})")


if __name__ == "__main__":
    app()
