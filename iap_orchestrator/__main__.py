"""Command line entry point: inspect the catalog and verify receipts."""

import argparse
import asyncio
import os
import sys
from datetime import datetime
from typing import Optional

from iap_orchestrator.config import ConfigurationError, get_config
from iap_orchestrator.main import create_orchestrator, setup_logging
from iap_orchestrator.models import NonRenewingSubscription, ReceiptFailure, ValidationService
from iap_orchestrator.repositories.product_catalog import ProductCatalog, ProductNotFoundError
from iap_orchestrator.repositories.purchase_store import InMemoryPurchaseStore
from iap_orchestrator.services.feedback import (
    Feedback,
    feedback_for_receipt_result,
    feedback_for_verify_purchase,
)
from iap_orchestrator.services.receipt_validator import FileReceiptSource
from iap_orchestrator.utils import format_duration

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _add_receipt_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--receipt", required=True, help="Path to the raw receipt file")
    parser.add_argument(
        "--service",
        choices=[s.value for s in ValidationService],
        default=None,
        help="Validation service (default: from configuration)",
    )
    parser.add_argument(
        "--shared-secret",
        default=None,
        help="Shared secret (default: from the configured environment variable)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iap-orchestrator",
        description="In-app purchase orchestrator - verify receipts and purchases",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "config/products.yaml"),
        help="Path to products.yaml configuration file (default: config/products.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=os.getenv("LOG_FORMAT", "console"),
        help="Log output format (default: console)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("catalog", help="List registered product identifiers and kinds")

    verify_receipt = subparsers.add_parser("verify-receipt", help="Validate a receipt file remotely")
    _add_receipt_options(verify_receipt)

    verify_purchase = subparsers.add_parser(
        "verify-purchase", help="Validate a receipt file and classify one product in it"
    )
    verify_purchase.add_argument("product", help="Local product name (e.g. autoRenewableYearly)")
    verify_purchase.add_argument(
        "--at",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time (ISO 8601, default: now)",
    )
    _add_receipt_options(verify_purchase)

    return parser


def print_feedback(feedback: Feedback) -> None:
    print(f"{feedback.title}: {feedback.message}")


async def run(args: argparse.Namespace) -> int:
    config = get_config(args.config)

    if args.command == "catalog":
        catalog = ProductCatalog(config)
        for product_id in catalog.get_all_product_ids():
            kind = catalog.kind_for(product_id)
            if isinstance(kind, NonRenewingSubscription):
                print(f"{product_id}\t{kind.type}\t{format_duration(kind.valid_duration_seconds)}")
            else:
                print(f"{product_id}\t{kind.type}")
        return EXIT_OK

    service: Optional[ValidationService] = ValidationService(args.service) if args.service else None
    orchestrator = create_orchestrator(
        purchase_store=InMemoryPurchaseStore(),
        receipt_source=FileReceiptSource(args.receipt),
        config=config,
        shared_secret=args.shared_secret,
        service=service,
    )

    if args.command == "verify-receipt":
        result = await orchestrator.verify_receipt()
        print_feedback(feedback_for_receipt_result(result))
        return EXIT_FAILED if isinstance(result, ReceiptFailure) else EXIT_OK

    product_id = ProductCatalog(config).identifier_for(args.product)
    outcome = await orchestrator.verify_purchase(product_id, reference_time=args.at)
    print_feedback(feedback_for_verify_purchase(outcome))
    return EXIT_FAILED if outcome.error is not None else EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the orchestrator CLI."""
    args = build_parser().parse_args(argv)

    os.environ["LOG_LEVEL"] = args.log_level
    os.environ["LOG_FORMAT"] = args.log_format
    os.environ["CONFIG_PATH"] = args.config

    setup_logging()

    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except ProductNotFoundError as e:
        print(str(e), file=sys.stderr)
        return EXIT_FAILED
    except KeyboardInterrupt:
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
