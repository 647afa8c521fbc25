# bulk_generate_pdfs.py
import argparse
import json
import os
from pathlib import Path

from config import Config
from models import invoice_from_dict
from pdf_service import generate_invoice_pdf, invoice_filename, save_to_directory


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bulk generate invoice PDFs from JSON files.")
    parser.add_argument("--input", required=True, help="Directory containing invoice *.json files.")
    parser.add_argument("--out", type=str, default="", help="Output directory (defaults to EXPORTS_DIR).")
    parser.add_argument("--all", action="store_true", help="Regenerate PDFs even if one already exists.")
    parser.add_argument(
        "--strategy",
        choices=["truncate", "wrap"],
        default=None,
        help="How long line-item descriptions are handled.",
    )
    args = parser.parse_args(argv)

    input_dir = Path(args.input)
    if not input_dir.is_dir():
        raise SystemExit(f"Input directory not found: {input_dir}")

    out_dir = args.out or Config.EXPORTS_DIR
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    save = save_to_directory(out_dir)

    files = sorted(input_dir.glob("*.json"))
    if not files:
        print("No invoice files found.")
        return

    total = len(files)
    generated = 0
    skipped = 0
    failed = 0

    for i, path in enumerate(files, start=1):
        try:
            inv = invoice_from_dict(json.loads(path.read_text(encoding="utf-8")))
            pdf_path = os.path.join(out_dir, invoice_filename(inv))
            if os.path.exists(pdf_path) and not args.all:
                skipped += 1
                print(f"[{i}/{total}] SKIP  {inv.invoice_number} (already has PDF)")
                continue

            generate_invoice_pdf(inv, save, description_strategy=args.strategy)
            generated += 1
            print(f"[{i}/{total}] DONE  {inv.invoice_number} -> {pdf_path}")

        except Exception as e:
            failed += 1
            print(f"[{i}/{total}] FAIL  {path.name}  ({e})")

    print("\nBulk PDF generation complete.")
    print(f"Generated: {generated}")
    print(f"Skipped:   {skipped}")
    print(f"Failed:    {failed}")
    print(f"Exports:   {out_dir}")


if __name__ == "__main__":
    main()
