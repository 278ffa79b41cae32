#!/usr/bin/env python3
"""
Dev helper: send a test CloudMailin webhook to a running relay.

Builds a CloudMailin JSON payload, optionally attaches a real file (or a
generated text file) and POST-s it to /webhooks/cloudmailin with HTTP Basic
credentials.

Usage
-----
# Basic — short body, one generated attachment, targeting localhost:8000
python scripts/send_test_webhook.py

# Body long enough to be split into numbered parts
python scripts/send_test_webhook.py --long-body 5000

# Attach a specific file
python scripts/send_test_webhook.py --file path/to/report.pdf

# Target a deployed instance
python scripts/send_test_webhook.py --url https://relay.example.com

Environment / .env
------------------
CLOUDMAILIN_BASIC_AUTH   "user:password" expected by the relay (required
                         unless --auth is passed).
"""

import argparse
import base64
import json
import os
import sys
import textwrap
from email.utils import format_datetime
from datetime import datetime, timezone
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def _build_cloudmailin_payload(
    from_email: str,
    to_address: str,
    subject: str,
    body: str,
    file_content: bytes,
    filename: str,
    content_type: str,
) -> dict:
    """
    Build a CloudMailin JSON (normalized) webhook payload.

    CloudMailin format:
      headers       — from, to, subject, date, message_id
      envelope      — from, to, recipients[]
      plain         — plain-text body
      attachments[] — {file_name, content (base64), content_type, size, disposition}
    """
    now = datetime.now(timezone.utc)
    return {
        "headers": {
            "from": from_email,
            "to": to_address,
            "subject": subject,
            "date": format_datetime(now),
            "message_id": f"<test-{int(now.timestamp())}@example.com>",
        },
        "envelope": {
            "from": from_email,
            "to": to_address,
            "recipients": [to_address],
            "tls": True,
        },
        "plain": body,
        "attachments": [
            {
                "file_name": filename,
                "content": base64.b64encode(file_content).decode(),
                "content_type": content_type,
                "size": len(file_content),
                "disposition": "attachment",
            }
        ],
    }


def _make_long_body(length: int) -> str:
    sentence = "The quick brown fox jumps over the lazy dog. "
    repeats = length // len(sentence) + 1
    return (sentence * repeats)[:length]


# ---------------------------------------------------------------------------
# Content-type detection
# ---------------------------------------------------------------------------

def _detect_content_type(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    return {
        ".csv": "text/csv",
        ".pdf": "application/pdf",
        ".txt": "text/plain",
        ".png": "image/png",
        ".jpg": "image/jpeg",
    }.get(ext, "application/octet-stream")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_webhook.py",
        description=textwrap.dedent("""\
            Send a test CloudMailin webhook to the mail relay.

            Reads CLOUDMAILIN_BASIC_AUTH from the environment or a .env file
            in the project root.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_webhook.py
              python scripts/send_test_webhook.py --long-body 5000
              python scripts/send_test_webhook.py --file notes.txt
              python scripts/send_test_webhook.py --url http://localhost:8000
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Relay base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--file",
        default=None,
        metavar="PATH",
        help="Path to a file to attach. A small text file is generated if omitted.",
    )
    parser.add_argument(
        "--from",
        dest="from_email",
        default="Test Sender <sender@example.com>",
        help='Sender address (default: "Test Sender <sender@example.com>")',
    )
    parser.add_argument(
        "--to",
        dest="to_address",
        default="inbox@example.com",
        help="Recipient address (default: inbox@example.com)",
    )
    parser.add_argument(
        "--subject",
        default="Relay test message",
        help='Email subject (default: "Relay test message")',
    )
    parser.add_argument(
        "--body",
        default="Hello from the relay test script.",
        help="Plain-text body.",
    )
    parser.add_argument(
        "--long-body",
        type=int,
        default=None,
        metavar="CHARS",
        help="Replace the body with generated text of this many characters.",
    )
    parser.add_argument(
        "--auth",
        default=None,
        metavar="USER:PASSWORD",
        help="Override the Basic credentials. Defaults to CLOUDMAILIN_BASIC_AUTH.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    user_pass = args.auth or os.getenv("CLOUDMAILIN_BASIC_AUTH", "")
    if not user_pass and not args.dry_run:
        print(
            "ERROR: No credentials found.\n"
            "Set CLOUDMAILIN_BASIC_AUTH in your environment or .env file, "
            "or pass --auth.",
            file=sys.stderr,
        )
        return 1

    if args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1
        file_content = file_path.read_bytes()
        filename = file_path.name
        content_type = _detect_content_type(filename)
    else:
        file_content = b"testfile"
        filename = "file.txt"
        content_type = "text/plain"

    body = _make_long_body(args.long_body) if args.long_body else args.body

    payload = _build_cloudmailin_payload(
        from_email=args.from_email,
        to_address=args.to_address,
        subject=args.subject,
        body=body,
        file_content=file_content,
        filename=filename,
        content_type=content_type,
    )

    endpoint = f"{args.url.rstrip('/')}/webhooks/cloudmailin"

    print(f"Endpoint  : {endpoint}")
    print(f"From      : {args.from_email}")
    print(f"Subject   : {args.subject}")
    print(f"Body      : {len(body):,} chars")
    print(f"Attachment: {filename} ({len(file_content):,} bytes)")

    if args.dry_run:
        display = dict(payload)
        display["attachments"] = [
            {**a, "content": "<base64-encoded, %d bytes>" % len(file_content)}
            for a in payload["attachments"]
        ]
        print("\n[DRY RUN] Payload:")
        print(json.dumps(display, indent=2))
        return 0

    encoded = base64.b64encode(user_pass.encode()).decode()
    try:
        response = httpx.post(
            endpoint,
            json=payload,
            headers={"Authorization": f"Basic {encoded}"},
            timeout=60,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the relay running? Start it with:\n"
            "  uvicorn app.main:app --app-dir backend --reload",
            file=sys.stderr,
        )
        return 1

    symbol = "OK" if response.status_code == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {response.status_code}")
    print(response.text)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
