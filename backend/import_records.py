import json
import sys

from repo_records import RecordRepo
from settings import settings


def main(export_path: str):
    print(f"Importing records from: {export_path}")

    with open(export_path, "r", encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        print("Export file must contain a JSON array of records")
        sys.exit(1)

    skipped = [r for r in records if not isinstance(r, dict)]
    batch = [r for r in records if isinstance(r, dict)]
    if skipped:
        print(f"Skipping {len(skipped)} entries that are not JSON objects")

    repo = RecordRepo(settings.data_file)
    repo.ensure_storage()
    # One rewrite for the whole batch
    total = repo.append_many(batch)

    print(f"Import complete. Records added: {len(batch)}, collection size: {total}")

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python import_records.py <path_to_export.json>")
        sys.exit(1)

    main(sys.argv[1])
