"""
Assignment resolver: picks the maintainer responsible for a reported item.

Tiers, first match wins:
1. a maintainer whose `locations` contains the normalized location
2. a maintainer whose `categories` contains the normalized category
3. the central Lost & Found office

Lookup failures never fail the report; they fall through to the next tier.
"""
import logging
import re
from typing import Iterable, List

from ..models import Assignee
from .directory_store import DirectoryStore

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)

_WHITESPACE = re.compile(r'\s+')
_DISALLOWED = re.compile(r'[^a-z0-9 ]')


def normalize(text: str) -> str:
    """Trim, lowercase, collapse whitespace and strip everything outside [a-z0-9 ]."""
    value = _WHITESPACE.sub(' ', (text or '').strip().lower())
    return _DISALLOWED.sub('', value)


def normalize_all(values: Iterable[str]) -> List[str]:
    """Normalize a list of labels, dropping blanks and duplicates while keeping order."""
    return list(dict.fromkeys(v for v in (normalize(x) for x in (values or [])) if v))


def _first_match(store: DirectoryStore, field: str, value: str):
    if not value:
        return None
    try:
        matches = store.find_maintainers(field, value, limit=1)
    except Exception as e:
        _logger.warning('Maintainer lookup by %s=%r failed, trying next tier: %s', field, value, str(e))
        return None
    return matches[0] if matches else None


def resolve_assignee(store: DirectoryStore, location: str, category: str) -> Assignee:
    """Resolve which maintainer (or the central office) is responsible for an item."""
    loc = normalize(location)
    cat = normalize(category)

    profile = _first_match(store, 'locations', loc)
    if profile is not None:
        _logger.info('Assigned by location %r to maintainer %s', loc, profile.uid)
        return profile.to_assignee()

    profile = _first_match(store, 'categories', cat)
    if profile is not None:
        _logger.info('Assigned by category %r to maintainer %s', cat, profile.uid)
        return profile.to_assignee()

    _logger.info('No maintainer for location=%r category=%r; using central office', loc, cat)
    return Assignee.central()
