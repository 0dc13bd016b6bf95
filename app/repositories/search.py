import re

# Characters with meaning inside a PostgREST or=(...) filter or an ilike pattern
_FILTER_CHARS = re.compile(r"[,()%*\\\"]")


def ilike_any(columns: tuple[str, ...], term: str) -> str | None:
    """Build an or_() filter matching `term` as a substring of any column.

    Returns:
        The filter string, or None if nothing searchable is left in `term`
    """
    term = _FILTER_CHARS.sub("", term).strip()
    if not term:
        return None
    return ",".join(f"{column}.ilike.%{term}%" for column in columns)
