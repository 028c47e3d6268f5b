"""List, add or remove Gmail delegates from the command line.

Runs the same batch runner as the HTTP API against a service account key on
disk. Mailboxes and delegates accept comma-separated lists; every mailbox is
paired with every delegate.

Usage:
    bin/manage-delegates.py --key-file sa.json list --mailboxes shared@example.com
    bin/manage-delegates.py --key-file sa.json add --mailboxes a@example.com,b@example.com \\
        --delegates alice@example.com
    bin/manage-delegates.py --key-file sa.json --csv operations.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from src.config import AppConfig
from src.delegates.batch import BatchRunner, expand_operations, parse_batch_csv, split_emails
from src.errors import ValidationError
from src.gmail.auth import ServiceAccountKey
from src.gmail.client import GmailClientFactory
from src.gmail.models import OperationResult


def format_result(result: OperationResult) -> str:
    status = "OK  " if result.success else "FAIL"
    target = result.mailbox_email
    if result.delegate_email:
        target = f"{target} <- {result.delegate_email}"
    line = f"[{status}] {result.operation:<6} {target}: {result.message}"
    if result.delegates is not None:
        if not result.delegates:
            line += "\n         (no delegates)"
        for d in result.delegates:
            line += f"\n         - {d.delegate_email} ({d.verification_status or 'unknown'})"
    return line


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage Gmail mailbox delegates")
    parser.add_argument("--key-file", required=True, help="Service account JSON key")
    parser.add_argument("--csv", help="File of operation,userEmail,delegateEmail lines")
    parser.add_argument("operation", nargs="?", choices=["list", "add", "remove"])
    parser.add_argument("--mailboxes", help="Comma-separated mailboxes to act on")
    parser.add_argument("--delegates", help="Comma-separated delegate addresses")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.csv:
        requests = parse_batch_csv(Path(args.csv).read_text())
    elif args.operation:
        mailboxes = split_emails(args.mailboxes)
        delegates = split_emails(args.delegates)
        if not mailboxes:
            parser.error("--mailboxes is required")
        if args.operation != "list" and not delegates:
            parser.error(f"--delegates is required for {args.operation}")
        requests = expand_operations(args.operation, mailboxes, delegates)
    else:
        parser.error("give an operation or --csv")

    if not requests:
        print("No operations to run.")
        return 0

    try:
        key = ServiceAccountKey.from_file(Path(args.key_file))
    except (OSError, ValidationError) as e:
        print(f"Could not load service account key: {e}", file=sys.stderr)
        return 2

    config = AppConfig.from_yaml()
    runner = BatchRunner(GmailClientFactory(config))
    print(f"Running {len(requests)} operation(s) as {key.client_email}...")
    batch = runner.run(key, requests)

    for result in batch.results:
        print(format_result(result))

    print(f"\nDone. {len(batch.results) - batch.failed}/{len(batch.results)} succeeded.")
    return 1 if batch.failed else 0


if __name__ == "__main__":
    sys.exit(main())
