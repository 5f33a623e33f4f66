"""
CLI script to generate financial record payloads.

Usage:
    uv run gen-records --count=1000 --tags=1,2,3 --output=fixtures/records.json
"""

import argparse
import json
from collections import Counter
from pathlib import Path

from generators import RecordGenerator


def parse_tag_ids(raw: str) -> list[int]:
    """Parse a comma-separated list of tag ids, ignoring blanks."""
    return [int(part) for part in raw.split(",") if part.strip()]


def generate_records(count: int, tag_ids: list[int], seed: int | None = None) -> list[dict]:
    """Generate ``count`` record payloads drawing tags from ``tag_ids``."""
    generator = RecordGenerator(seed=seed)
    return generator.build_batch(count, tag_ids)


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Generate financial record payloads")
    parser.add_argument("--count", type=int, default=1000, help="Number of records to generate")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument(
        "--tags", type=str, default="", help="Comma-separated tag ids to attach (e.g. 1,2,3)"
    )
    parser.add_argument(
        "--output", type=str, default="fixtures/records.json", help="Output file path"
    )

    args = parser.parse_args(argv)

    tag_ids = parse_tag_ids(args.tags)
    print(f"Generating {args.count} records with {len(tag_ids)} candidate tags...")

    records = generate_records(args.count, tag_ids, seed=args.seed)

    # Ensure output directory exists
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(records, f, indent=2)

    print(f"Generated {len(records)} records -> {output_path}")

    if not records:
        return

    directions = Counter(record["direction"] for record in records)
    tag_counts = Counter(len(record["tags"]) for record in records)

    print("\nDirection summary:")
    for direction, count in sorted(directions.items()):
        print(f"  {direction}: {count} ({count / len(records) * 100:.1f}%)")

    print("\nTags per record:")
    for num_tags, count in sorted(tag_counts.items()):
        print(f"  {num_tags}: {count}")

    print("\nSample record:")
    print(json.dumps(records[0], indent=2))


if __name__ == "__main__":
    main()
