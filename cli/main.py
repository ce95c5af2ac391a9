# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: main.py (qabrew command line)
# -----------------------------------------------------------------------------
import asyncio

import click

import settings
from config.Config import Config
from eligibility.QATagFilter import QATagFilter
from embedding.QABatchScheduler import QABatchScheduler
from embedding.QAEmbedder import QAEmbedder
from extractor.QAPostsExtractor import QAPostsExtractor
from health.EmbeddingHealth import EmbeddingHealth
from services.QABrewService import QABrewService
from services.QAExtractService import QAExtractService
from services.QASearchService import QASearchService
from store.QACorpusStore import QACorpusStore
from utility.display import format_hits
from utility.errors import CorpusSchemaError, QueryEmbeddingError
from utility.logging_utils import set_log_level

__version__ = "0.1.0"


def _load_config() -> Config:
    try:
        return Config.from_env()
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _build_embedder(cfg: Config) -> QAEmbedder:
    return QAEmbedder.from_config(cfg)


@click.group()
@click.version_option(version=__version__, prog_name="qabrew")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """qabrew - embed a Stack Exchange question corpus and search it."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        set_log_level("DEBUG")


@cli.command("parse-xml")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_path", type=click.Path(dir_okay=False))
@click.option(
    "--keep-embeddings/--no-keep-embeddings",
    default=settings.EXTRACT_KEEP_EMBEDDINGS,
    help="Carry embeddings over from an existing OUTPUT_PATH by id",
)
def parse_xml_command(input_path: str, output_path: str, keep_embeddings: bool) -> None:
    """Parse and clean up a Posts.xml dump into a Parquet corpus."""
    service = QAExtractService(extractor=QAPostsExtractor(), store=QACorpusStore())
    try:
        summary = service.extract_to_corpus(input_path, output_path, keep_embeddings=keep_embeddings)
    except CorpusSchemaError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Extracted {summary.total_records} questions -> {summary.output_path}")
    if keep_embeddings:
        click.echo(f"Carried over {summary.carried_embeddings} embeddings")


@cli.command("brew")
@click.argument("input_path", type=click.Path(dir_okay=False))
@click.argument("output_path", type=click.Path(dir_okay=False))
@click.option("--tag", "tags", multiple=True, help="Eligible tag (repeatable); overrides QABREW_ELIGIBLE_TAGS")
@click.option("--max-concurrency", type=click.IntRange(min=1), default=None, help="Provider calls in flight")
def brew_command(input_path: str, output_path: str, tags: tuple, max_concurrency: int | None) -> None:
    """Compute missing embeddings for eligible records and write the updated corpus."""
    tag_filter = QATagFilter.from_tags(tags or settings.ELIGIBLE_TAGS)

    def _scheduler() -> QABatchScheduler:
        # credentials are only required once the corpus has work
        cfg = _load_config()
        return QABatchScheduler(_build_embedder(cfg), max_concurrency=max_concurrency or cfg.max_concurrency)

    service = QABrewService(store=QACorpusStore(), tag_filter=tag_filter, scheduler_factory=_scheduler)

    try:
        summary = asyncio.run(service.brew_async(input_path, output_path))
    except (CorpusSchemaError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    if summary.no_op:
        click.echo("No update needed")
    else:
        click.echo(
            f"Embedded {summary.embedded}/{summary.eligible} eligible records "
            f"({summary.skipped} skipped) -> {summary.output_path}"
        )


@cli.command("search")
@click.argument("input_path", type=click.Path(dir_okay=False))
@click.argument("text")
@click.option("--top-k", type=click.IntRange(min=1), default=None, help="Number of results")
@click.option("--max-rows", type=click.IntRange(min=1), default=None, help="Rows shown")
@click.option("--str-len", type=click.IntRange(min=4), default=None, help="Max title width")
def search_command(input_path: str, text: str, top_k: int | None, max_rows: int | None, str_len: int | None) -> None:
    """Vector search the corpus with free text."""
    cfg = _load_config()
    embedder = _build_embedder(cfg)
    service = QASearchService(
        store=QACorpusStore(),
        embedder=embedder,
        url_prefix=cfg.question_url_prefix,
        default_top_k=cfg.search_top_k,
    )

    async def _search():
        async with embedder:
            return await service.search(input_path, text, top_k=top_k)

    try:
        hits = asyncio.run(_search())
    except (CorpusSchemaError, FileNotFoundError, QueryEmbeddingError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(format_hits(
        hits,
        max_rows=max_rows or cfg.display_max_rows,
        str_len=str_len or cfg.display_str_len,
    ))


@cli.command("health")
def health_command() -> None:
    """Smoke test the embedding provider."""
    cfg = _load_config()
    health = EmbeddingHealth(_build_embedder(cfg), expected_dim=cfg.embed_dimensions or None)
    if not health.run():
        raise click.ClickException("Embedding healthcheck FAILED")
    click.echo("Embedding healthcheck PASSED")


if __name__ == "__main__":
    cli()
