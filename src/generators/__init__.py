"""
Test data generators for load testing.
"""

import random
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from faker import Faker

TAG_ADJECTIVES = ("Red", "Blue", "Green", "Yellow", "Purple", "Orange", "Black", "White", "Pink", "Brown")
TAG_NOUNS = ("Cat", "Dog", "Bird", "Fish", "Lion", "Tiger", "Bear", "Wolf", "Fox", "Deer")

DIRECTIONS = ("IN", "OUT")
MIN_AMOUNT = 1
MAX_AMOUNT = 10000
MAX_TAGS_PER_RECORD = 3
DUE_DATE_WINDOW_YEARS = 2


def years_before(moment: datetime, years: int) -> datetime:
    """Shift a datetime back by calendar years (Feb 29 maps to Feb 28)."""
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        return moment.replace(year=moment.year - years, day=28)


def floor_to_millis(moment: datetime) -> datetime:
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def ceil_to_millis(moment: datetime) -> datetime:
    floored = floor_to_millis(moment)
    return floored if floored == moment else floored + timedelta(milliseconds=1)


def random_due_date(now: datetime | None = None, rng: random.Random | None = None) -> datetime:
    """
    Pick an instant uniformly between two years ago and now, both inclusive.

    The result is millisecond-aligned so that serializing it never moves it
    outside the window.
    """
    rng = rng or random
    now = now or datetime.now(UTC)
    start = ceil_to_millis(years_before(now, DUE_DATE_WINDOW_YEARS))
    end = floor_to_millis(now)
    span = (end - start).total_seconds()
    due = floor_to_millis(start + timedelta(seconds=rng.uniform(0, span)))
    # Float rounding in timedelta must not push the value outside the window
    return min(max(due, start), end)


def format_timestamp(moment: datetime) -> str:
    """Serialize as UTC ISO-8601 with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def select_random_subset(candidates: Sequence, k: int, rng: random.Random | None = None) -> list:
    """
    Pick ``k`` elements without replacement (all of them when fewer exist).

    Each round draws a uniformly random index among the remaining candidates
    and removes it, so the result carries no ordering guarantee.
    """
    rng = rng or random
    remaining = list(candidates)
    selected = []
    for _ in range(min(max(k, 0), len(remaining))):
        index = rng.randrange(len(remaining))
        selected.append(remaining.pop(index))
    return selected


def extract_tag_ids(available_tags) -> list:
    """
    Collect distinct tag ids from a tag listing.

    Accepts tag dicts (``{"id": 7, "name": ...}``) or bare ids. Anything else,
    including a non-iterable argument, contributes nothing.
    """
    if available_tags is None or isinstance(available_tags, (str, bytes, dict)):
        return []
    if not isinstance(available_tags, Iterable):
        return []

    tag_ids = []
    seen = set()
    for tag in available_tags:
        tag_id = tag.get("id") if isinstance(tag, dict) else tag
        if isinstance(tag_id, bool) or not isinstance(tag_id, (int, str)):
            continue
        if tag_id == "" or tag_id in seen:
            continue
        seen.add(tag_id)
        tag_ids.append(tag_id)
    return tag_ids


class RecordGenerator:
    """Generates randomized financial-record payloads and tag names."""

    def __init__(self, seed: int | None = None, clock=None):
        self.rng = random.Random(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)
        self._clock = clock or (lambda: datetime.now(UTC))

    def generate_tag_name(self) -> str:
        """Generate a tag name such as "Blue Fox 417"."""
        adjective = self.fake.random_element(elements=TAG_ADJECTIVES)
        noun = self.fake.random_element(elements=TAG_NOUNS)
        return f"{adjective} {noun} {self.fake.random_int(min=0, max=999)}"

    def build_record(self, available_tags=None) -> dict:
        """Build one record payload, attaching 0-3 tags drawn from ``available_tags``."""
        num_tags = self.rng.randint(0, MAX_TAGS_PER_RECORD)
        tag_ids = select_random_subset(extract_tag_ids(available_tags), num_tags, self.rng)

        return {
            "direction": self.rng.choice(DIRECTIONS),
            "amount": self.rng.randint(MIN_AMOUNT, MAX_AMOUNT),
            "dueDate": format_timestamp(random_due_date(self._clock(), self.rng)),
            "tags": [{"id": tag_id} for tag_id in tag_ids],
        }

    def build_batch(self, count: int, available_tags=None) -> list[dict]:
        """Build a list of record payloads for a bulk submission."""
        # Normalize once so every record draws from the same candidate ids
        tag_ids = extract_tag_ids(available_tags)
        return [self.build_record(tag_ids) for _ in range(count)]


if __name__ == "__main__":
    # Demo: Generate sample data
    import json

    generator = RecordGenerator()
    sample_tags = [{"id": i, "name": generator.generate_tag_name()} for i in range(1, 6)]

    print("Sample tags:")
    print(json.dumps(sample_tags, indent=2))

    print("\nSample record:")
    print(json.dumps(generator.build_record(sample_tags), indent=2))
