"""Category key conventions shared by the bucketer, layout and pipeline.

Single source of truth for sentinel keys so BucketedCount tables, rankings
and stacked series agree on them.
"""

# Column key of the total-events table (bucketing without a category accessor).
TOTAL_KEY = "(total)"

# Key that events without category metadata are counted under.
UNCATEGORIZED = "(none)"

# Event attributes usable as a category accessor by name.
CATEGORY_FIELDS = ("artist", "track", "album", "category")


def is_total_only(columns: list[str]) -> bool:
    """True if a table holds only the total-events column."""
    return list(columns) == [TOTAL_KEY]


def format_category(key: str) -> str:
    """Short label for tooltips / legends: the key, or 'Unknown' for missing metadata."""
    if key == UNCATEGORIZED:
        return "Unknown"
    return str(key)
