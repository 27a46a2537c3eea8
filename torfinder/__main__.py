"""Command line entry point: run the API server or search from a terminal."""

import argparse
import sys

from loguru import logger

from .client.api_client import FinderApiClient
from .client.credentials import FileCredentialStore
from .client.session import FilterMode, SearchSession
from .core.errors import FinderError
from .core.logging_setup import setup_logging
from .core.settings_manager import SettingsManager

PROVIDER_LABELS = {
    "torbox": "TorBox (multi-indexer)",
    "1337x": "1337x",
    "tpb": "The Pirate Bay",
}


def _build_parser(settings: SettingsManager) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="torfinder", description="Search torrents and send them to TorBox.")
    parser.add_argument("--log-level", default=settings.get("log_level", "INFO"))
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.get("host", "127.0.0.1"))
    serve.add_argument("--port", type=int, default=settings.get("port", 8000))

    search = sub.add_parser("search", help="Search through a running API server")
    search.add_argument("query")
    search.add_argument("--server", default=f"http://{settings.get('host')}:{settings.get('port')}")
    search.add_argument("--provider", choices=sorted(PROVIDER_LABELS), default=settings.get("default_provider", "torbox"))
    search.add_argument("--limit", type=int, default=settings.get("default_limit", 50))
    search.add_argument("--filter", choices=[m.value for m in FilterMode], default=FilterMode.ALL.value)
    search.add_argument("--key", help="TorBox API key (enables cache status and --add)")
    search.add_argument("--forget", action="store_true", help="Do not remember the key; clear any stored one")
    search.add_argument("--add", type=int, metavar="N", help="Send visible result N to TorBox")
    return parser


def _print_results(session: SearchSession) -> None:
    visible = session.visible()
    counts = session.counts()
    print(f"Results ({len(visible)} shown; {counts['cached']} cached of {counts['all']})")
    for idx, item in enumerate(visible, start=1):
        seeds = item.seeders if item.seeders is not None else "-"
        peers = item.leechers if item.leechers is not None else "-"
        print(
            f"{idx:>3}. {item.title}\n"
            f"     [{item.source}] {item.size_formatted or '-'} | seeds {seeds} | peers {peers} | "
            f"{session.cache_label(item)}"
        )
    if not visible:
        print("No results. Try a different search or provider.")


def _run_search(args) -> int:
    session = SearchSession(
        FinderApiClient(args.server),
        credential_store=FileCredentialStore(),
        remember=not args.forget,
    )
    if args.key:
        session.set_credential(args.key)
    if args.forget:
        session.set_remember(False)
    session.set_filter(args.filter)

    session.search(args.query, args.provider, args.limit)
    if session.message:
        print(session.message, file=sys.stderr)
    _print_results(session)

    if args.add is None:
        return 0
    visible = session.visible()
    if not 1 <= args.add <= len(visible):
        print(f"No visible result #{args.add}", file=sys.stderr)
        return 2
    try:
        response = session.submit(visible[args.add - 1].magnet)
    except FinderError as e:
        print(f"{session.message or e.message}", file=sys.stderr)
        return 1
    print(session.message)
    return 0 if response.ok else 1


def main(argv=None) -> int:
    settings = SettingsManager()
    args = _build_parser(settings).parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        import uvicorn

        logger.info(f"Starting torfinder API on http://{args.host}:{args.port}")
        uvicorn.run("torfinder.web.app:app", host=args.host, port=args.port, log_level=args.log_level.lower())
        return 0
    return _run_search(args)


if __name__ == "__main__":
    sys.exit(main())
