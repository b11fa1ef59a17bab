"""
Admin analytics over the lost_items, found_items and claims collections:
open counts, claim outcomes, top categories, location hotspots and the
average time from claim to approval.
"""
import logging
from collections import Counter

from ..models import ClaimStatus, ItemStatus, ItemType
from .user_service import require_admin

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)

TOP_N = 6


def _top(counter: Counter, n: int):
    return [{'name': name, 'count': count} for name, count in counter.most_common(n)]


def _seconds(ts):
    return ts.timestamp() if hasattr(ts, 'timestamp') else None


def _avg_hours_to_verify(claims):
    durations = []
    for claim in claims:
        if claim.status is not ClaimStatus.APPROVED:
            continue
        start, end = _seconds(claim.created_at), _seconds(claim.verified_at)
        if start and end and end > start:
            durations.append(end - start)
    if not durations:
        return None
    return round(sum(durations) / len(durations) / 3600, 1)


def get_analytics(store, acting_uid, acting_role, top_n: int = TOP_N):
    """
    Compute dashboard statistics for admins.

    Returns:
        dict: totals, open counts, claim counts by status, topCategories and
        hotspots as [{name, count}], avgHoursToVerify (None without approvals)
    """
    require_admin(store, acting_uid, acting_role)

    lost = store.list_items(ItemType.LOST)
    found = store.list_items(ItemType.FOUND)
    claims = store.list_claims()

    by_status = Counter(c.status for c in claims)
    categories = Counter((i.category or '').strip() or 'Other' for i in lost + found)
    hotspots = Counter()
    for location in [i.location for i in lost + found] + [c.location for c in claims]:
        location = (location or '').strip()
        if location:
            hotspots[location] += 1

    stats = {
        'totalLost': len(lost),
        'totalFound': len(found),
        'openLost': sum(1 for i in lost if i.status is ItemStatus.OPEN),
        'openFound': sum(1 for i in found if i.status is ItemStatus.OPEN),
        'pending': by_status[ClaimStatus.PENDING],
        'approved': by_status[ClaimStatus.APPROVED],
        'rejected': by_status[ClaimStatus.REJECTED],
        'topCategories': _top(categories, top_n),
        'hotspots': _top(hotspots, top_n),
        'avgHoursToVerify': _avg_hours_to_verify(claims),
    }
    _logger.info('Analytics computed for %s: %d lost, %d found, %d claims',
                 acting_uid, len(lost), len(found), len(claims))
    return stats
