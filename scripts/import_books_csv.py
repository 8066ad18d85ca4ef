#!/usr/bin/env python3
"""
CSV Book Import Script

Bulk loads the catalog from the CSV exported from the inventory spreadsheet:
- `insert` mode creates books (title + stock, price when the file has one),
  skipping titles that already exist
- `prices` mode updates prices of existing books, matched by title
- Brazilian number format for prices ("1.234,56")
- Summary statistics and error logging

The file is ';'-separated and usually latin-1 encoded.

Usage:
    python import_books_csv.py path/to/livros.csv
    python import_books_csv.py path/to/livros.csv --mode prices --dry-run
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.book import BookDraft
from domain.errors import BookstoreError
from domain.payments import parse_number
from repositories.book_repository import create_book, find_book_by_title, update_price_by_title

TITLE_COLUMNS = ("Título", "Titulo", "titulo")
STOCK_COLUMNS = ("Saldo estoque",)
PRICE_COLUMNS = ("Preço", "Preco", "Valor venda", "Valor")


@dataclass
class ImportResult:
    """Results from a CSV import run."""
    total_rows: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)


def parse_price(value: str | None) -> Decimal:
    """
    Parse a price written in Brazilian notation.

    "1.234,56" -> 1234.56, "39,90" -> 39.90, "1234.56" -> 1234.56, "" -> 0.00
    """
    if value is None:
        return Decimal("0.00")
    text = str(value).strip().replace("R$", "").strip()
    if not text:
        return Decimal("0.00")
    return parse_number(text)


def parse_stock(value: str | None) -> int:
    """Parse the stock column; anything unreadable counts as 0."""
    if value is None:
        return 0
    text = str(value).strip().replace(".", "").split(",")[0]
    try:
        return max(int(text), 0)
    except ValueError:
        return 0


def first_value(row: dict[str, str], columns: tuple[str, ...]) -> str | None:
    for column in columns:
        value = row.get(column)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def read_rows(csv_path: str, encoding: str = "latin-1", skip_lines: int = 0) -> list[dict[str, str]]:
    """
    Read the CSV into dictionaries keyed by trimmed header names.

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If the CSV has no title column
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_file, "r", encoding=encoding, newline="") as f:
        for _ in range(skip_lines):
            next(f, None)
        reader = csv.DictReader(f, delimiter=";")
        if not reader.fieldnames:
            raise ValueError("CSV file is empty or malformed")
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
        if not any(column in reader.fieldnames for column in TITLE_COLUMNS):
            raise ValueError(f"CSV missing a title column (one of: {', '.join(TITLE_COLUMNS)})")
        return [dict(row) for row in reader]


def import_books(rows: list[dict[str, str]], dry_run: bool = False) -> ImportResult:
    """Create one book per row; existing titles are skipped."""
    result = ImportResult()

    for row_num, row in enumerate(rows, start=2):  # Row 1 is header
        result.total_rows += 1
        title = first_value(row, TITLE_COLUMNS)
        if not title:
            result.skipped += 1
            result.errors.append({"row_num": row_num, "error": "Missing title"})
            continue

        try:
            draft = BookDraft(
                title=title,
                price=parse_price(first_value(row, PRICE_COLUMNS)),
                stock=parse_stock(first_value(row, STOCK_COLUMNS)),
            )
            if dry_run:
                result.successful += 1
                continue
            if find_book_by_title(draft.title) is not None:
                result.skipped += 1
                continue
            create_book(draft)
            result.successful += 1
        except BookstoreError as e:
            result.failed += 1
            result.errors.append({"row_num": row_num, "title": title, "error": e.message})

    return result


def update_prices(rows: list[dict[str, str]], dry_run: bool = False) -> ImportResult:
    """Update the price of each listed title; titles not in the catalog are skipped."""
    result = ImportResult()

    for row_num, row in enumerate(rows, start=2):
        result.total_rows += 1
        title = first_value(row, TITLE_COLUMNS)
        if not title:
            result.skipped += 1
            continue

        price = parse_price(first_value(row, PRICE_COLUMNS))
        if dry_run:
            result.successful += 1
            continue

        try:
            updated = update_price_by_title(title, price)
        except BookstoreError as e:
            result.failed += 1
            result.errors.append({"row_num": row_num, "title": title, "error": e.message})
            continue

        if updated:
            result.successful += updated
        else:
            result.skipped += 1

    return result


SUMMARY_LABELS = {
    "insert": ("Books created", "Already in catalog / no title"),
    "prices": ("Prices updated", "Title not in catalog"),
}


def print_summary(result: ImportResult, mode: str, dry_run: bool = False) -> None:
    """Print import summary statistics."""
    done_label, skipped_label = SUMMARY_LABELS[mode]
    if dry_run:
        done_label = "Rows parsed"

    print()
    print("=" * 60)
    print(f"IMPORT SUMMARY ({mode}{', dry run' if dry_run else ''})")
    print("=" * 60)
    print(f"{'Rows read:':<32}{result.total_rows}")
    print(f"{done_label + ':':<32}{result.successful}")
    print(f"{skipped_label + ':':<32}{result.skipped}")
    print(f"{'Failed:':<32}{result.failed}")

    for error in result.errors[:5]:
        print(f"  ! row {error['row_num']}: {error.get('title', '')} {error['error']}".rstrip())
    if len(result.errors) > 5:
        print(f"  ! ... {len(result.errors) - 5} more in the error log")

    print("=" * 60)


def save_error_log(errors: list[dict], output_path: str) -> None:
    """Write the failed rows to a JSON file for review."""
    Path(output_path).write_text(json.dumps(errors, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"\nError log saved to: {output_path}")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Import books from a ';'-separated CSV into the catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create books (title + stock)
  python import_books_csv.py livros.csv

  # The spreadsheet export has a banner line above the header
  python import_books_csv.py livros.csv --skip-lines 1

  # Update prices by title, parse only
  python import_books_csv.py livros.csv --mode prices --dry-run
        """
    )

    parser.add_argument("csv_path", help="Path to the CSV file to import")
    parser.add_argument(
        "--mode",
        choices=("insert", "prices"),
        default="insert",
        help="insert new books or update prices of existing ones (default: insert)"
    )
    parser.add_argument("--encoding", default="latin-1", help="File encoding (default: latin-1)")
    parser.add_argument("--skip-lines", type=int, default=0, help="Lines to skip before the header")
    parser.add_argument("--dry-run", action="store_true", help="Parse the CSV without writing to the database")
    parser.add_argument(
        "--error-log",
        default="import_errors.json",
        help="Path to save error log (default: import_errors.json)"
    )

    args = parser.parse_args()

    try:
        rows = read_rows(args.csv_path, encoding=args.encoding, skip_lines=args.skip_lines)
        print(f"Read {len(rows)} rows from {args.csv_path}")

        if args.mode == "prices":
            result = update_prices(rows, dry_run=args.dry_run)
        else:
            result = import_books(rows, dry_run=args.dry_run)

        print_summary(result, args.mode, dry_run=args.dry_run)

        if result.errors:
            save_error_log(result.errors, args.error_log)

        return 1 if result.failed > 0 else 0

    except KeyboardInterrupt:
        print("\n\nImport interrupted by user")
        return 130

    except Exception as e:
        print(f"\nFATAL ERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
