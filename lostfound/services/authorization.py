"""
Who may act on a claim. The claim lifecycle and the notification relay both
enforce these rules, so they live in one place.
"""
from typing import Optional

from ..errors import PreconditionError
from ..models import Claim, Role, UserProfile


def authorize_decision(acting_uid: str, acting_role, claim: Claim) -> Role:
    """Admins may decide any claim; maintainers only claims assigned to them."""
    role = Role.parse(acting_role)
    if role is None or not role.is_reviewer:
        raise PreconditionError('Only maintainers and admins can review claims', 'FORBIDDEN_ROLE', 403)
    if role is Role.MAINTAINER and (not acting_uid or acting_uid != claim.assignment.assigned_maintainer_uid):
        raise PreconditionError('Claim is not assigned to you', 'NOT_ASSIGNED', 403)
    return role


def authorize_claim_owner(caller_uid: str, caller_role, claim: Claim) -> Role:
    """Only the student/teacher who filed a claim may announce it."""
    role = Role.parse(caller_role)
    if role is None or not role.is_claimant:
        raise PreconditionError('Only students and teachers can submit claims', 'FORBIDDEN_ROLE', 403)
    if claim.claimant_uid != caller_uid:
        raise PreconditionError('Not your claim', 'NOT_CLAIM_OWNER', 403)
    return role


def ensure_enabled(profile: Optional[UserProfile]):
    """Writes by a disabled account are rejected even if the session gate let them through."""
    if profile is not None and profile.disabled:
        reason = profile.disabled_reason or 'Not specified'
        raise PreconditionError(f'Account is disabled (reason: {reason})', 'ACCOUNT_DISABLED', 403)
