#!/usr/bin/env python3
"""CLI entry-point for synthetic Spanish invoice generation."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

from fiscal_extract.data.synthetic import SyntheticInvoiceGenerator


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate synthetic invoices with their OCR text.")
    parser.add_argument(
        "--records",
        type=int,
        default=200,
        help="Number of invoices to fabricate (must be > 0).",
    )
    parser.add_argument(
        "--noise",
        type=float,
        default=0.1,
        help="Noise level to inject into the rendered text (0.0-1.0).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Deterministic random seed for reproducible batches.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data/synthetic"),
        help="Directory that will receive the CSV files and OCR texts.",
    )
    parser.add_argument(
        "--prefix",
        default="synthetic",
        help="Filename prefix for the generated files.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    if args.records < 1:
        raise ValueError("--records must be a positive integer")
    if not 0.0 <= args.noise <= 1.0:
        raise ValueError("--noise must be between 0.0 and 1.0")

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    generator = SyntheticInvoiceGenerator(seed=args.seed)
    invoices = generator.generate_invoices(args.records)
    documents = generator.render_documents(invoices, noise_level=args.noise)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    prefix = args.prefix.strip() or "synthetic"

    invoices_path = output_dir / f"{prefix}_invoices_{timestamp}.csv"
    line_items_path = output_dir / f"{prefix}_line_items_{timestamp}.csv"
    texts_dir = output_dir / f"{prefix}_texts_{timestamp}"
    texts_dir.mkdir()

    invoice_df = generator.invoices_to_dataframe(invoices)
    line_items_df = generator.line_items_to_dataframe(invoices)
    invoice_df.to_csv(invoices_path, index=False)
    line_items_df.to_csv(line_items_path, index=False)

    for index, text in enumerate(documents, start=1):
        (texts_dir / f"{index:05d}.txt").write_text(text, encoding="utf-8")

    print(f"Wrote {len(invoice_df)} invoice summaries -> {invoices_path}")
    print(f"Wrote {len(line_items_df)} line items -> {line_items_path}")
    print(f"Wrote {len(documents)} OCR texts -> {texts_dir}")


if __name__ == "__main__":
    main()
