"""CLI: dry-run a Tuenti login and print the BOSH bodies it would send."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from tuenti_bosh import __version__
from tuenti_bosh.adapters import TuentiAdapter
from tuenti_bosh.bosh import Connection, Request
from tuenti_bosh.config import Config, cfg, load_config_with_env
from tuenti_bosh.core.constants import MECHANISM_PLAIN, NS_HTTPBIND, NS_SASL, Status
from tuenti_bosh.core.errors import TuentiError

_STREAM_FEATURES = (
    '<body xmlns="{httpbind}" sid="dry-run" authid="dry-run" wait="{wait}" hold="{hold}" requests="{window}">'
    '<stream:features xmlns:stream="http://etherx.jabber.org/streams">'
    '<mechanisms xmlns="{sasl}"><mechanism>{mechanism}</mechanism></mechanisms>'
    "</stream:features></body>"
)


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru. Replace default logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format=(
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan> | {message}"
        ),
    )


def reload_config(config_path: Path) -> Config:
    """Load config from path and update global cfg."""
    data = load_config_with_env(config_path)
    cfg.reload(data)
    return cfg


class DryRunTransport:
    """Prints every outgoing body and keeps it pending; nothing goes on the wire."""

    def __init__(self) -> None:
        self.pending: list[Request] = []

    def dispatch(self, connection: Connection, request: Request) -> None:
        print(request.data)
        self.pending.append(request)


def simulated_features(conn: Connection) -> str:
    """Server reply advertising PLAIN, echoing the connection's tuning."""
    return _STREAM_FEATURES.format(
        httpbind=NS_HTTPBIND,
        sasl=NS_SASL,
        wait=conn.wait,
        hold=conn.hold,
        window=conn.window,
        mechanism=MECHANISM_PLAIN,
    )


def dry_run(jid: str, user_id: str, session_id: str, config: Config) -> list[Status]:
    """Run connect + a simulated features reply. Returns the statuses reported."""
    statuses: list[Status] = []

    def on_status(status: Status, condition: str | None) -> None:
        statuses.append(status)
        logger.info("Status: {} {}", status.name, condition or "")

    transport = DryRunTransport()
    conn = Connection(transport, config)
    adapter = TuentiAdapter(conn)
    adapter.connect(jid, user_id, session_id, on_status)

    conn.complete(transport.pending.pop(0), simulated_features(conn))
    return statuses


def main() -> None:
    """Main entrypoint."""
    parser = argparse.ArgumentParser(
        description="tuenti-bosh: dry-run a Tuenti XMPP login over BOSH"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml; optional)",
    )
    parser.add_argument("--jid", required=True, help="Tuenti JID, e.g. 42@xmpp1.tuenti.com")
    parser.add_argument("--user-id", required=True, help="Tuenti user id")
    parser.add_argument("--session-id", required=True, help="Tuenti session id")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        config = reload_config(args.config)
        statuses = dry_run(args.jid, args.user_id, args.session_id, config)
    except TuentiError as exc:
        logger.error("{}", exc)
        sys.exit(1)

    if Status.AUTHENTICATING not in statuses:
        logger.error("Dry run did not reach authentication")
        sys.exit(1)


if __name__ == "__main__":
    main()
