"""Command-line interface: ``ax search``, ``ax get`` and ``ax list``."""

import json
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, TypeVar

import click

from appsintoss_docs import __version__
from appsintoss_docs.config import CACHE_DIR_ENV, CORPORA, DEFAULT_LIMIT, DEFAULT_MAX_CONTENT_LENGTH, PRIMARY
from appsintoss_docs.docs import OutlineDocs
from appsintoss_docs.exceptions import DocumentationError, DocumentNotFoundError
from appsintoss_docs.models import SearchOptions
from appsintoss_docs.searcher import Searcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

# "doc" is how the primary corpus is addressed by `ax get`
GET_TARGETS = {"doc": PRIMARY.name, **{name: name for name in CORPORA if name != PRIMARY.name}}


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Turn package errors into click errors so they exit with status 1."""
    try:
        yield
    except DocumentationError as exc:
        logger.debug("Command failed", exc_info=True)
        raise click.ClickException(str(exc)) from exc


def _with_searcher(ctx: click.Context, corpus_name: str, action: Callable[[Searcher], T]) -> T:
    cache_dir: Path | None = ctx.obj["cache_dir"]
    with _reported_errors(), Searcher(CORPORA[corpus_name], cache_dir=cache_dir) as searcher:
        searcher.ensure_index()
        return action(searcher)


@click.group()
@click.version_option(__version__, prog_name="ax")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=CACHE_DIR_ENV,
    help=f"Cache root for indexes and metadata (default: ${CACHE_DIR_ENV} or the user cache directory).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, cache_dir: Path | None) -> None:
    """Search and browse the Apps in Toss developer documentation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir


@cli.command("search")
@click.argument("corpus", type=click.Choice(sorted(CORPORA)))
@click.option("--query", "-q", required=True, help="Search query.")
@click.option("--limit", "-n", type=int, default=DEFAULT_LIMIT, show_default=True, help="Maximum number of results.")
@click.option(
    "--max-content-length",
    type=int,
    default=DEFAULT_MAX_CONTENT_LENGTH,
    show_default=True,
    help="Truncate each result's content to this many characters.",
)
@click.pass_context
def search_command(ctx: click.Context, corpus: str, query: str, limit: int, max_content_length: int) -> None:
    """Search one documentation corpus (docs, tds-rn or tds-web)."""
    options = SearchOptions(limit=limit, max_content_length=max_content_length)
    results = _with_searcher(ctx, corpus, lambda searcher: searcher.search(query, options))
    _echo_json([asdict(result) for result in results])


@cli.command("get")
@click.argument("target", type=click.Choice([*GET_TARGETS, "example"]))
@click.option("--id", "doc_id", required=True, help="Document or example identifier.")
@click.pass_context
def get_command(ctx: click.Context, target: str, doc_id: str) -> None:
    """Print one document (doc, tds-rn, tds-web) as JSON, or an example as markdown."""
    if target == "example":
        with _reported_errors():
            click.echo(OutlineDocs().get_example(doc_id))
        return

    document = _with_searcher(ctx, GET_TARGETS[target], lambda searcher: searcher.get_document(doc_id))
    if document is None:
        raise click.ClickException(str(DocumentNotFoundError(doc_id)))
    _echo_json(asdict(document))


@cli.command("list")
@click.argument("target", type=click.Choice(["docs", "examples"]))
def list_command(target: str) -> None:
    """List the entries of the documentation outline or of the examples."""
    docs = OutlineDocs()
    with _reported_errors():
        entries = docs.list_documents() if target == "docs" else docs.list_examples()
    _echo_json([asdict(entry) for entry in entries])


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
