"""Entry point and argument parsing for toneshare.

Subcommands
-----------
serve     Run the persistence API (HTTP/JSON).
install   Create the database tables locally.
setups    List setups published on a server.
edit      Open the interactive signal-chain editor.
"""

from __future__ import annotations

import argparse
import logging
import sys

from toneshare.config import load_settings
from toneshare.logging_setup import configure_logging


logger = logging.getLogger(__name__)


# -- shared helpers ----------------------------------------------------------

def _add_common_args(parser: argparse.ArgumentParser):
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: $LOG_LEVEL or WARNING)")


def _add_db_args(parser: argparse.ArgumentParser, settings):
    parser.add_argument("--db", default=None,
                        help=f"SQLite database path (default: {settings.db_path})")


def _add_url_args(parser: argparse.ArgumentParser, settings):
    parser.add_argument("--url", default=None,
                        help=f"Persistence API base URL (default: {settings.server_url})")


# -- subcommand handlers -----------------------------------------------------

def _cmd_serve(args, settings):
    """Run the HTTP persistence API."""
    from toneshare.server import run_server
    from toneshare.store import SetupStore

    store = SetupStore(args.db or settings.db_path)
    if args.install:
        store.install()
    run_server(store, args.host or settings.host, args.port or settings.port)


def _cmd_install(args, settings):
    """Provision storage, locally or through a running server."""
    if args.url:
        from toneshare.client import SetupClient
        from toneshare.errors import ExternalServiceFailure
        try:
            message = SetupClient(args.url).install()
        except ExternalServiceFailure as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"[Install] {message or 'done'}")
        return

    from toneshare.store import SetupStore
    store = SetupStore(args.db or settings.db_path)
    store.install()
    print(f"[Install] Tables created in {store.db_path}")


def _cmd_setups(args, settings):
    from toneshare.client import SetupClient
    from toneshare.errors import ExternalServiceFailure

    try:
        setups = SetupClient(args.url or settings.server_url).list_setups()
    except ExternalServiceFailure as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    for s in setups:
        print(f"{s.get('id') or ''}\t{s.get('title') or ''}\t{s.get('artist') or ''}\t"
              f"{s.get('creator') or ''}")


def _cmd_edit(args, settings):
    """Open the interactive editor."""
    from toneshare.ai import WELCOME_BACK, ToneAdvisor
    from toneshare.cli import EditorCLI
    from toneshare.client import SetupClient
    from toneshare.editor import EditorSession
    from toneshare.errors import ExternalServiceFailure
    from toneshare.models import User

    user = User(id=f"user-{args.user.lower()}", name=args.user)
    session = EditorSession.blank() if args.blank else EditorSession()
    client = None if args.offline else SetupClient(args.url or settings.server_url)
    advisor = None if args.no_ai else ToneAdvisor(model=args.model or settings.model)

    greeting = WELCOME_BACK
    if advisor is not None:
        try:
            greeting = advisor.welcome("login", user.name)
        except ExternalServiceFailure as e:
            logger.warning("[AI] welcome message failed: %s", e)

    shell = EditorCLI(session, user, client=client, advisor=advisor)
    shell.intro = f"{EditorCLI.intro}\n{greeting}\n"
    try:
        shell.cmdloop()
    except KeyboardInterrupt:
        print()


# -- main --------------------------------------------------------------------

def main(argv=None):
    settings = load_settings()
    ap = argparse.ArgumentParser(
        description="ToneShare - share guitar and bass signal chains")
    sub = ap.add_subparsers(dest="command")

    # -- serve ---------------------------------------------------------------
    sp_serve = sub.add_parser("serve", help="Run the HTTP persistence API")
    _add_common_args(sp_serve)
    _add_db_args(sp_serve, settings)
    sp_serve.add_argument("--host", default=None,
                          help=f"Bind address (default: {settings.host})")
    sp_serve.add_argument("--port", type=int, default=None,
                          help=f"Port (default: {settings.port})")
    sp_serve.add_argument("--install", action="store_true",
                          help="Create the tables before serving")
    sp_serve.set_defaults(func=_cmd_serve)

    # -- install -------------------------------------------------------------
    sp_install = sub.add_parser("install", help="Create the database tables")
    _add_common_args(sp_install)
    _add_db_args(sp_install, settings)
    sp_install.add_argument("--url", default=None,
                            help="Install through a running server instead")
    sp_install.set_defaults(func=_cmd_install)

    # -- setups --------------------------------------------------------------
    sp_setups = sub.add_parser("setups", help="List published setups")
    _add_common_args(sp_setups)
    _add_url_args(sp_setups, settings)
    sp_setups.set_defaults(func=_cmd_setups)

    # -- edit ----------------------------------------------------------------
    sp_edit = sub.add_parser("edit", help="Open the signal-chain editor")
    _add_common_args(sp_edit)
    _add_url_args(sp_edit, settings)
    sp_edit.add_argument("--user", default="Musician",
                         help="Display name attached to published setups")
    sp_edit.add_argument("--blank", action="store_true",
                         help="Start with no pedals")
    sp_edit.add_argument("--offline", action="store_true",
                         help="Do not talk to the persistence API")
    sp_edit.add_argument("--no-ai", action="store_true",
                         help="Disable critiques, blueprints and greetings")
    sp_edit.add_argument("--model", default=None,
                         help=f"Text generation model (default: {settings.model})")
    sp_edit.set_defaults(func=_cmd_edit)

    args = ap.parse_args(argv)
    if args.command is None:
        ap.error("a command is required: serve, install, setups or edit")

    level = configure_logging(default_level="WARNING", override=args.log_level)
    logger.info("toneshare %s (log level: %s)", args.command, logging.getLevelName(level))
    args.func(args, settings)


if __name__ == "__main__":
    main()
