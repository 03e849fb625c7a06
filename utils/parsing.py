from datetime import datetime


def parse_iso(dt_str: str) -> datetime:
    # Expect ISO format like "2026-01-20T18:00:00"
    return datetime.fromisoformat(dt_str)
