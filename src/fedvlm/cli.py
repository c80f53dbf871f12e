"""Command-line entry point.

Examples:
- fedvlm search BRCA1 --mock
- fedvlm search 13-42298583-A-G --exclude 3
- fedvlm nodes
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from fedvlm.config import Config
from fedvlm.errors import ConfigurationError, QueryError
from fedvlm.orchestrator import QueryOrchestrator
from fedvlm.query import classify
from fedvlm.transport import build_transport
from fedvlm.view import ResultView, ViewStatus, gene_track

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fedvlm.view import ResultRow


def print_section(title: str) -> None:
    """Print a named section heading."""
    print(f"\n{title}")
    print("-" * len(title))


def print_kv_rows(rows: list[tuple[str, object]]) -> None:
    """Print compact key/value rows using a uniform bullet style."""
    for key, value in rows:
        print(f"- {key}: {value}")


def print_result_row(row: ResultRow) -> None:
    host = f" (hosted by {row.hosting_institution})" if row.hosting_institution else ""
    print_section(f"{row.node_name}{host}")
    kv: list[tuple[str, object]] = [
        ("Variant", row.variant_id),
        ("AC", row.allele_count),
    ]
    if row.consequence is not None:
        kv.append(("Consequence", row.consequence))
    if row.phenotypes:
        kv.append(("Associations", "; ".join(row.phenotypes)))
    print_kv_rows(kv)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fedvlm",
        description="Search a federated variant network by gene symbol or variant id.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or debug detail (-vv) to stderr.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Run one federated query.")
    search.add_argument(
        "term", help="Gene symbol (BRCA1) or variant id (13-42298583-A-G)."
    )
    search.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="NODE_ID",
        help="Hide results from a peer node. Repeatable.",
    )
    search.add_argument(
        "--mock",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Serve canned demo payloads instead of calling the federation.",
    )
    search.add_argument("--variant-endpoint", default=None)
    search.add_argument("--gene-endpoint", default=None)
    search.add_argument("--timeout", type=float, default=None, help="Seconds.")

    sub.add_parser("nodes", help="List known peer nodes.")
    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbosity > 1 else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_config_or_exit(args: argparse.Namespace) -> Config:
    """Build Config from parsed args, exiting with a concise actionable error."""
    try:
        return Config(
            variant_endpoint=args.variant_endpoint,
            gene_endpoint=args.gene_endpoint,
            timeout_s=args.timeout,
            use_mock=bool(args.mock),
        )
    except ConfigurationError as exc:
        hint = f" Hint: {exc.hint}" if exc.hint else ""
        print(f"Configuration error: {exc}.{hint}", file=sys.stderr)
        raise SystemExit(2) from exc


async def run_search(args: argparse.Namespace, config: Config) -> int:
    try:
        key = classify(args.term)
    except QueryError as exc:
        print(f"{exc}. {exc.hint or ''}".strip(), file=sys.stderr)
        return 2

    transport = build_transport(config)
    try:
        orchestrator = QueryOrchestrator.from_config(transport, config)
        await orchestrator.submit(key)
    finally:
        aclose = getattr(transport, "aclose", None)
        if callable(aclose):
            await aclose()

    view = ResultView(orchestrator, registry=config.registry)
    for node_id in args.exclude:
        if not view.filters.is_excluded(node_id):
            view.toggle(node_id)

    title = f"{key.kind.title()} {key.value}"
    print(title)
    print("=" * len(title))

    message = view.message()
    if message is not None:
        print(message)
    for row in view.rows():
        print_result_row(row)
    for gene in view.genes():
        track = gene_track(gene)
        if track is not None:
            node_name = config.registry.display_name(gene.peer_node_id)
            print_section(f"{gene.gene_symbol} track ({node_name})")
            print_kv_rows(
                [
                    ("Span", f"{track.start}-{track.stop}"),
                    ("Coding exons", len(track.coding_exons)),
                ]
            )

    data = view.state.data
    if data is not None and data.failures:
        print_section("Skipped nodes")
        for failure in data.failures:
            node = failure.peer_node_id or "?"
            print(f"- entry {failure.index} ({node}): {failure.error}")

    return 1 if view.status is ViewStatus.ERROR else 0


def list_nodes(config: Config) -> int:
    for node in config.registry:
        host = f" ({node.hosting_institution})" if node.hosting_institution else ""
        print(f"{node.id}\t{node.display_name}{host}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "nodes":
        return list_nodes(Config())

    config = build_config_or_exit(args)
    return asyncio.run(run_search(args, config))


if __name__ == "__main__":
    raise SystemExit(main())
