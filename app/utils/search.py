def matches_search(item, term, fields):
    """Pencarian sederhana (case-insensitive) atas list yang sudah di-fetch."""
    needle = (term or '').strip().lower()
    if not needle:
        return True
    for name in fields:
        value = getattr(item, name, None)
        if value is not None and needle in str(value).lower():
            return True
    return False


def matches_value(actual, wanted):
    """Filter dropdown: '' / 'all' berarti tidak difilter."""
    if wanted in (None, '', 'all'):
        return True
    if actual is None:
        return False
    return str(actual) == str(wanted)


def filter_items(items, term=None, fields=(), **exact):
    result = []
    for item in items:
        if not matches_search(item, term, fields):
            continue
        if all(matches_value(getattr(item, attr, None), wanted) for attr, wanted in exact.items()):
            result.append(item)
    return result
