"""
GhostTransfer command line client.

Usage:
    ghosttransfer send report.pdf photo.jpg -m "see attached" --lifetime 1d
    ghosttransfer send -m "one time secret" --max-views 1 --password s3cret!
    ghosttransfer serve --port 8080      # local web UI
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import mimetypes
import sys
from pathlib import Path
from uuid import uuid4

from ghosttransfer.config import settings
from ghosttransfer.log_config import configure_logging
from ghosttransfer.models.form import FormState
from ghosttransfer.models.share import Lifetime, ShareResult
from ghosttransfer.models.upload import SelectedFile, UploadStatus
from ghosttransfer.services.api_client import GhostTransferClient
from ghosttransfer.services.form_controller import FormController
from ghosttransfer.services.formatting import format_bytes
from ghosttransfer.services.qr import qr_ascii, qr_download_url

LIFETIME_CHOICES = ["none"] + [lt.value for lt in Lifetime if lt.value]


def _selected_file(path: Path) -> SelectedFile:
    if not path.is_file():
        raise FileNotFoundError(f"No such file: {path}")
    mime, _ = mimetypes.guess_type(path.name)
    return SelectedFile(
        id=str(uuid4()),
        name=path.name,
        size_bytes=path.stat().st_size,
        path=path,
        content_type=mime,
    )


def _max_views(value: str) -> int | None:
    if value.lower() in ("unlimited", "inf"):
        return None
    try:
        views = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("must be a number or 'unlimited'")
    if not 1 <= views <= 999:
        raise argparse.ArgumentTypeError("must be between 1 and 999")
    return views


class UploadPrinter:
    """Print upload progress the way a terminal user wants it: one line per change."""

    def __init__(self) -> None:
        self.reported: dict[str, UploadStatus] = {}

    def __call__(self, state: FormState) -> None:
        for entry in state.entries:
            if self.reported.get(entry.id) == entry.status:
                continue
            self.reported[entry.id] = entry.status
            if entry.status == UploadStatus.SUCCESS:
                print(f"  OK    {entry.name} ({format_bytes(entry.size_bytes)})")
            elif entry.status == UploadStatus.ERROR:
                print(f"  FAIL  {entry.name}: {entry.error_message}", file=sys.stderr)
            elif entry.status == UploadStatus.UPLOADING:
                print(f"  ...   {entry.name}")


def _print_errors(errors: dict[str, str]) -> None:
    for field, message in errors.items():
        print(f"ERROR: {field}: {message}", file=sys.stderr)


async def run_send(args: argparse.Namespace) -> int:
    """Execute the headless send workflow. Returns the process exit code."""
    try:
        files = [_selected_file(Path(p)) for p in args.files]
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    client = GhostTransferClient(base_url=args.api_url, public=args.public)
    controller = FormController(client, success_display=0)
    try:
        controller.set_field("message", args.message or "")
        controller.set_field("lifetime", "" if args.lifetime == "none" else args.lifetime)
        if args.max_views is not None:
            controller.set_field("max_views", str(args.max_views))
        if args.password:
            controller.set_field("password", args.password)
            confirm = args.confirm_password
            if confirm is None:
                confirm = getpass.getpass("Confirm password: ")
            controller.set_field("confirm_password", confirm)
        if args.allowed_ip:
            controller.set_field("allowed_ip", args.allowed_ip)

        if files:
            print(f"Uploading {len(files)} file(s) to {client.base_url}")
            controller.subscribe(UploadPrinter())
            controller.add_files(files)
            await controller.wait_for_uploads()

            for attempt in range(args.retries):
                failed = [e for e in controller.state.entries if e.status == UploadStatus.ERROR]
                if not failed:
                    break
                print(f"Retrying {len(failed)} failed upload(s) ({attempt + 1}/{args.retries})")
                for entry in failed:
                    controller.retry(entry.id)
                await controller.wait_for_uploads()

            failed = [e for e in controller.state.entries if e.status == UploadStatus.ERROR]
            if failed and args.skip_failed:
                for entry in failed:
                    print(f"  WARN: skipping {entry.name}", file=sys.stderr)
                    controller.remove(entry.id)
            elif failed:
                print(
                    f"ERROR: {len(failed)} upload(s) failed. "
                    "Use --retries or --skip-failed.",
                    file=sys.stderr,
                )
                return 1

        state = await controller.submit()
        if state.result is None:
            _print_errors(state.errors)
            return 1

        share = ShareResult.model_validate(state.result)
        share_url = share.share_url
        print(f"\nShare created (id {share.id}).")
        if share_url:
            print(f"Your secret URL: {share_url}\n")
            if not args.no_qr:
                print(qr_ascii(share_url))
                print(f"QR download: {qr_download_url(share_url)}")
        return 0
    finally:
        await controller.aclose()


def run_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("ghosttransfer.main:app", host=args.host, port=args.port)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghosttransfer",
        description="Send notes and files anonymously with self-destructing links.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log API requests and responses.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    send = sub.add_parser("send", help="Upload files and/or a message and print the share link.")
    send.add_argument("files", nargs="*", help="Files to attach.")
    send.add_argument("-m", "--message", default=None, help="Message text.")
    send.add_argument(
        "--lifetime",
        choices=LIFETIME_CHOICES,
        default="none",
        help="Link lifetime before it expires (default: none).",
    )
    send.add_argument(
        "--max-views",
        type=_max_views,
        default=None,
        help="Maximum number of views, 1-999 (default: unlimited).",
    )
    send.add_argument("--password", default=None, help="Password required to open the link.")
    send.add_argument(
        "--confirm-password",
        default=None,
        help="Password confirmation (prompted for when omitted).",
    )
    send.add_argument("--allowed-ip", default=None, help="Only this IPv4 address may open the link.")
    send.add_argument(
        "--api-url",
        default=None,
        help=f"Share API origin (default: {settings.api_base_url}).",
    )
    send.add_argument("--public", action="store_true", help="Upload files as public media.")
    send.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Retry failed uploads this many times.",
    )
    send.add_argument(
        "--skip-failed",
        action="store_true",
        help="Drop files that still fail instead of aborting.",
    )
    send.add_argument("--no-qr", action="store_true", help="Do not print the QR code.")

    serve = sub.add_parser("serve", help="Run the local web UI.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging("INFO" if args.verbose else "WARNING")

    if args.command == "send":
        sys.exit(asyncio.run(run_send(args)))
    run_serve(args)


if __name__ == "__main__":
    main()
