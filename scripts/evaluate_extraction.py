#!/usr/bin/env python3
"""Measure extraction accuracy on a synthetic invoice batch."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pandas as pd

from fiscal_extract.data.synthetic import SyntheticInvoice, SyntheticInvoiceGenerator
from fiscal_extract.logging_config import configure_logging
from fiscal_extract.schemas import ExtractedInvoice
from fiscal_extract.service import extract_invoice
from fiscal_extract.utils.clock import fixed_clock

CHECKED_FIELDS = (
    "invoice_number",
    "issue_date",
    "issuer_tax_id",
    "client_tax_id",
    "base",
    "vat_amount",
    "irpf_amount",
    "total",
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate field extraction against synthetic invoices.")
    parser.add_argument("--records", type=int, default=200, help="Number of invoices to fabricate (must be > 0).")
    parser.add_argument(
        "--noise",
        type=float,
        default=0.0,
        help="Character noise injected into the rendered text (0.0-1.0).",
    )
    parser.add_argument("--seed", type=int, default=42, help="Deterministic random seed.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data/evaluation"),
        help="Directory that will receive the CSV report.",
    )
    parser.add_argument("--log-level", default=None, help="Log level for the fiscal_extract logger.")
    return parser.parse_args()


def _compare(truth: SyntheticInvoice, extracted: ExtractedInvoice) -> dict[str, object]:
    expected = {
        "invoice_number": truth.invoice_number,
        "issue_date": truth.issue_date,
        "issuer_tax_id": truth.issuer_tax_id.upper(),
        "client_tax_id": truth.client_tax_id.upper(),
        "base": truth.base,
        "vat_amount": truth.vat_amount,
        "irpf_amount": truth.irpf_amount,
        "total": truth.total,
    }
    actual = {
        "invoice_number": extracted.invoice_number,
        "issue_date": extracted.issue_date,
        "issuer_tax_id": extracted.issuer.tax_id,
        "client_tax_id": extracted.client.tax_id,
        "base": extracted.base,
        "vat_amount": extracted.vat_amount,
        "irpf_amount": extracted.irpf_amount or Decimal("0.00"),
        "total": extracted.total,
    }
    row: dict[str, object] = {"invoice_number": truth.invoice_number, "warnings": len(extracted.warnings)}
    for name in CHECKED_FIELDS:
        row[f"{name}_ok"] = expected[name] == actual[name]
    return row


def main() -> None:
    args = parse_args()

    if args.records < 1:
        raise ValueError("--records must be a positive integer")
    if not 0.0 <= args.noise <= 1.0:
        raise ValueError("--noise must be between 0.0 and 1.0")

    configure_logging(args.log_level)
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    generator = SyntheticInvoiceGenerator(seed=args.seed)
    invoices = generator.generate_invoices(args.records)
    documents = generator.render_documents(invoices, noise_level=args.noise)

    rows = []
    for truth, text in zip(invoices, documents):
        result = extract_invoice(text, clock=fixed_clock(truth.issue_date))
        rows.append(_compare(truth, result.invoice))
    report = pd.DataFrame(rows)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    report_path = output_dir / f"extraction_report_{timestamp}.csv"
    report.to_csv(report_path, index=False)

    accuracy = report[[f"{name}_ok" for name in CHECKED_FIELDS]].mean()
    print(f"Wrote {len(report)} rows -> {report_path}")
    for column, value in accuracy.items():
        print(f"{column.removesuffix('_ok'):>15}: {value:.1%}")


if __name__ == "__main__":
    main()
