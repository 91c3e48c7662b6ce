"""
Bulk EOI import from the old sheet export (JSON list or .xlsx).

    python manage.py import_eois data/eoi.json
    python manage.py import_eois data/eoi.xlsx --skip-validation
"""
import json
import os
from datetime import date, datetime

import pandas as pd
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from common.utils import as_str, parse_date, parse_int
from eoi.models import EOI
from eoi.serializers import EOISerializer
from eoi.services import create_eoi, next_eoi_no

ERRORS_FILENAME = "import-errors.json"

INT_FIELDS = ("contact", "alt", "aadhar")


def parse_sheet_date(raw):
    """
    Sheet dates MM/DD/YY me hain; 2-digit year < 50 → 20xx, warna 19xx.
    Excel se aaye Timestamp / ISO strings bhi chalte hain.
    """
    if isinstance(raw, (datetime, date)):
        return parse_date(raw)
    s = as_str(raw)
    parts = s.split("/")
    if len(parts) == 3 and all(p.strip().isdigit() for p in parts):
        month, day, year = (int(p) for p in parts)
        if year < 100:
            year += 2000 if year < 50 else 1900
        return date(year, month, day)
    parsed = parse_date(s)
    if parsed is None:
        raise ValueError(f"Invalid date: {raw!r}")
    return parsed


def clean_record(item: dict) -> dict:
    cleaned = {
        "date": parse_sheet_date(item.get("date")),
        "applicant": as_str(item.get("applicant")) or None,
        "config": as_str(item.get("config")),
        "eoi_amt": item.get("eoiAmt") or 0,
        "eoi_no": parse_int(item.get("eoiNo")),
        "manager": as_str(item.get("manager")),
        "cp": as_str(item.get("cp")) or None,
        "pan": as_str(item.get("pan")).upper() or None,
        "address": as_str(item.get("address")) or None,
    }
    for field in INT_FIELDS:
        cleaned[field] = parse_int(item.get(field))
    if item.get("status"):
        cleaned["status"] = as_str(item["status"])
    return cleaned


def to_wire(record: dict) -> dict:
    """model field names → serializer (camelCase) payload"""
    data = {k: v for k, v in record.items() if k not in ("eoi_amt", "eoi_no")}
    data["eoiAmt"] = record["eoi_amt"]
    if record.get("eoi_no") is not None:
        data["eoiNo"] = record["eoi_no"]
    return {k: v for k, v in data.items() if v is not None}


class Command(BaseCommand):
    help = "Imports EOI records from a JSON or XLSX file"

    def add_arguments(self, parser):
        parser.add_argument("file", type=str, help="Path to .json or .xlsx file")
        parser.add_argument(
            "--skip-validation",
            action="store_true",
            help="Insert rows directly, bypassing serializer validation",
        )

    def read_rows(self, path):
        ext = os.path.splitext(path)[1].lower()
        if ext in (".xlsx", ".xls"):
            df = pd.read_excel(path, dtype=object)
        elif ext == ".json":
            with open(path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
            if not isinstance(raw, list):
                raise CommandError("JSON file must contain a list of records")
            df = pd.DataFrame(raw, dtype=object)
        else:
            raise CommandError(f"Unsupported file type: {ext or path}")

        df = df.astype(object).where(pd.notnull(df), None)
        return df.to_dict(orient="records")

    def insert(self, record, skip_validation):
        if skip_validation:
            record = dict(record)
            if record.get("eoi_no") is None:
                record["eoi_no"] = next_eoi_no()
            with transaction.atomic():
                return EOI.objects.create(**record)

        ser = EOISerializer(data=to_wire(record))
        if not ser.is_valid():
            raise ValueError(json.dumps(ser.errors, default=str))
        return create_eoi(ser.validated_data)

    def handle(self, *args, **options):
        path = options["file"]
        skip_validation = options["skip_validation"]

        if not os.path.exists(path):
            raise CommandError(f"File not found: {path}")

        rows = self.read_rows(path)
        self.stdout.write(f"Found {len(rows)} records in {path}")

        cleaned = []
        errors = []
        for idx, item in enumerate(rows, start=1):
            try:
                cleaned.append(clean_record(item))
            except (TypeError, ValueError) as exc:
                errors.append({"record": item, "error": str(exc)})
                self.stdout.write(self.style.ERROR(f"  ✗ Could not clean record {idx}: {exc}"))
        self.stdout.write(f"Cleaned {len(cleaned)} records")

        success = 0
        for idx, record in enumerate(cleaned, start=1):
            try:
                eoi = self.insert(record, skip_validation)
            except Exception as exc:
                detail = getattr(exc, "detail", None) or str(exc)
                errors.append({"record": record, "error": str(detail)})
                self.stdout.write(
                    self.style.ERROR(f"  ✗ Record {idx}/{len(cleaned)} (EOI No: {record.get('eoi_no')}): {detail}")
                )
                continue
            success += 1
            self.stdout.write(self.style.SUCCESS(f"  ✓ Imported {idx}/{len(cleaned)} - EOI No: {eoi.eoi_no}"))

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("Import Summary"))
        self.stdout.write(f"   Total records: {len(rows)}")
        self.stdout.write(f"   Successful: {success}")
        self.stdout.write(f"   Failed: {len(errors)}")

        if errors:
            out = os.path.join(os.path.dirname(os.path.abspath(path)), ERRORS_FILENAME)
            with open(out, "w", encoding="utf-8") as fh:
                json.dump(errors, fh, indent=2, default=str)
            self.stdout.write(self.style.WARNING(f"Failed records written to {out}"))
