import argparse
import sys
from pathlib import Path

from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.ingestion.exceptions import IngestionError
from app.logging.logger import Log
from app.publishing.exceptions import PublishingError
from app.publishing.models import UpdateRequest, UploadRequest
from app.publishing.publisher import MagazinePublisher, build_publisher


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Publish PDF magazines as optimized page images."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Publish a new magazine from a PDF.")
    upload.add_argument("pdf", type=Path, help="PDF file to ingest.")
    upload.add_argument("--title", required=True)
    upload.add_argument("--description", default="")
    upload.add_argument("--published", action="store_true")
    upload.add_argument("--user-id", required=True, help="Owner of the magazine.")

    replace = sub.add_parser("replace", help="Edit a magazine, optionally with a new PDF.")
    replace.add_argument("magazine_id")
    replace.add_argument("--pdf", type=Path, default=None, help="Replacement PDF file.")
    replace.add_argument("--title", required=True)
    replace.add_argument("--description", default="")
    replace.add_argument("--published", action="store_true")
    replace.add_argument("--user-id", required=True)

    delete = sub.add_parser("delete", help="Delete a magazine and its files.")
    delete.add_argument("magazine_id")
    delete.add_argument("--user-id", required=True)
    return parser


def run_command(publisher: MagazinePublisher, args: argparse.Namespace) -> None:
    if args.command == "upload":
        magazine = publisher.upload(
            UploadRequest(
                user_id=args.user_id,
                title=args.title,
                pdf_bytes=args.pdf.read_bytes(),
                description=args.description,
                published=args.published,
            )
        )
        Log.info(
            f"Published magazine {magazine.id} as '{magazine.slug}' "
            f"({magazine.total_pages} pages)"
        )
    elif args.command == "replace":
        magazine = publisher.replace(
            args.magazine_id,
            UpdateRequest(
                user_id=args.user_id,
                title=args.title,
                description=args.description,
                published=args.published,
                pdf_bytes=args.pdf.read_bytes() if args.pdf is not None else None,
            ),
        )
        Log.info(f"Updated magazine {magazine.id} ({magazine.total_pages} pages)")
    elif args.command == "delete":
        publisher.delete(args.magazine_id, args.user_id)


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args -> initialize pool -> run the publisher command."""
    args = build_arg_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        run_command(build_publisher(settings), args)
    except (IngestionError, PublishingError) as exc:
        Log.error(f"{args.command} failed: {exc}")
        return 1
    finally:
        close_pool()
    return 0


if __name__ == "__main__":
    sys.exit(main())
