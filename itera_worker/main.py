import argparse
import asyncio
import json
import mimetypes
import sys
from dataclasses import asdict
from pathlib import Path
from uuid import UUID

from itera_worker.config.settings import Settings
from itera_worker.database.connection import close_pool, init_pool
from itera_worker.database.models import DocumentRecord, NewDocument
from itera_worker.database.repositories.document_repository import DocumentRepository
from itera_worker.database.repositories.export_row_repository import ExportRowRepository
from itera_worker.itera.base import BaseIteraClient
from itera_worker.itera.client import IteraApiClient
from itera_worker.logging.logger import Log
from itera_worker.processor.exceptions import NotFoundError
from itera_worker.processor.orchestrator import DocumentOrchestrator
from itera_worker.worker.batch_poller import BatchPoller
from itera_worker.worker.worker import Worker


def build_orchestrator(client: BaseIteraClient) -> DocumentOrchestrator:
    """Build a DocumentOrchestrator backed by the PostgreSQL repositories."""
    return DocumentOrchestrator(
        doc_repo=DocumentRepository(),
        export_repo=ExportRowRepository(),
        client=client,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="itera-worker",
        description="Upload documents to Itera and store their extracted export data.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Store documents for later processing")
    add.add_argument("files", nargs="+", type=Path)
    add.add_argument("--cnpj", required=True)
    add.add_argument("--source", default="")
    add.add_argument("--description", default="")
    add.add_argument("--content-type", default=None)

    process = sub.add_parser("process", help="Upload documents and wait for Itera")
    process.add_argument("document_ids", nargs="+", type=UUID)
    process.add_argument("--no-wait", action="store_true")
    process.add_argument("--timeout", type=float, default=None)
    process.add_argument("--interval", type=float, default=None)

    listing = sub.add_parser("list", help="List stored documents without their content")
    listing.add_argument("--cnpj", default=None)

    for name, help_text in (
        ("show", "Show a stored document without its content"),
        ("status", "Refresh a document's Itera status"),
        ("export", "Show stored export rows of a document"),
        ("mapping", "Show Itera's De-Para mapping of a document"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("document_id", type=UUID)

    sub.add_parser("worker", help="Continuously process pending documents")
    return parser


def _load_documents(args: argparse.Namespace) -> list[NewDocument]:
    documents = []
    for path in args.files:
        content_type = args.content_type or mimetypes.guess_type(path.name)[0]
        documents.append(
            NewDocument(
                file_name=path.name,
                content=path.read_bytes(),
                cnpj=args.cnpj,
                content_type=content_type or "application/pdf",
                source=args.source,
                description=args.description,
            )
        )
    return documents


def _document_summary(record: DocumentRecord) -> dict[str, object]:
    summary = asdict(record)
    del summary["content"]
    summary["content_length"] = len(record.content)
    return summary


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


async def run_command(args: argparse.Namespace, settings: Settings) -> int:
    """Initialize pool and client, dispatch the command, and release both."""
    await init_pool(settings)
    client = IteraApiClient.from_settings(settings)
    try:
        orchestrator = build_orchestrator(client)
        poller = BatchPoller(orchestrator, settings)

        if args.command == "add":
            records = await orchestrator.add_documents(_load_documents(args))
            _print_json([{"id": r.id, "file_name": r.file_name} for r in records])
        elif args.command == "list":
            records = await orchestrator.list_documents(args.cnpj)
            _print_json([_document_summary(r) for r in records])
        elif args.command == "show":
            try:
                record = await orchestrator.get_document(args.document_id)
            except NotFoundError as exc:
                Log.warning(str(exc))
                return 1
            _print_json(_document_summary(record))
        elif args.command == "process":
            result = await poller.run(
                args.document_ids,
                wait_for_completion=False if args.no_wait else None,
                timeout_seconds=args.timeout,
                polling_interval_seconds=args.interval,
            )
            _print_json({**asdict(result), "is_success": result.is_success})
            return 0 if result.error_count == 0 else 1
        elif args.command == "status":
            _print_json(asdict(await orchestrator.check_and_update_status(args.document_id)))
        elif args.command == "export":
            export = await orchestrator.get_export_results(args.document_id)
            _print_json(asdict(export))
            return 0 if export.is_success else 1
        elif args.command == "mapping":
            mapping = await orchestrator.get_mapping(args.document_id)
            if mapping is None:
                Log.warning(f"Document {args.document_id} has not been uploaded yet")
                return 1
            print(mapping)
        elif args.command == "worker":
            await Worker(orchestrator, poller, settings).run()
        return 0
    finally:
        await client.aclose()
        await close_pool()


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args -> configure logging -> run the command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    try:
        return asyncio.run(run_command(args, settings))
    except KeyboardInterrupt:
        Log.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
