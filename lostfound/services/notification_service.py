"""
Best-effort notification dispatch used by the claim lifecycle.

Dispatchers never raise: every call returns a DeliveryResult which the caller
logs. A failed notification never rolls back the state change that triggered it.
"""
import abc
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import LostFoundError

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)


class DeliveryStatus(str, Enum):
    DELIVERED = 'delivered'
    SKIPPED = 'skipped'
    FAILED = 'failed'


@dataclass(frozen=True)
class DeliveryResult:
    status: DeliveryStatus
    reason: str = ''
    detail: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def delivered(cls, detail=None):
        return cls(DeliveryStatus.DELIVERED, '', dict(detail or {}))

    @classmethod
    def skipped(cls, reason: str):
        return cls(DeliveryStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, reason: str):
        return cls(DeliveryStatus.FAILED, reason)

    @classmethod
    def from_relay_response(cls, out: Dict[str, Any]):
        """Map the relay's `{ok, reason, ...}` body onto a result."""
        out = out or {}
        if out.get('ok'):
            return cls.delivered(out)
        return cls.skipped(out.get('reason') or 'Not delivered')


class NotificationDispatcher(abc.ABC):
    @abc.abstractmethod
    def notify_claim_created(self, claim_id: str, caller_uid: str, id_token: Optional[str] = None) -> DeliveryResult:
        ...

    @abc.abstractmethod
    def notify_claim_status(self, claim_id: str, caller_uid: str, id_token: Optional[str] = None) -> DeliveryResult:
        ...


class NullDispatcher(NotificationDispatcher):
    """Used when no relay is configured."""

    def __init__(self, reason: str = 'NOTIFY_API_BASE not set'):
        self.reason = reason

    def notify_claim_created(self, claim_id, caller_uid, id_token=None):
        return DeliveryResult.skipped(self.reason)

    def notify_claim_status(self, claim_id, caller_uid, id_token=None):
        return DeliveryResult.skipped(self.reason)


class RelayNotificationDispatcher(NotificationDispatcher):
    """Calls the notify relay over HTTP, forwarding the caller's identity token."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout

    def _post(self, path: str, body: Dict[str, Any], id_token: Optional[str]) -> DeliveryResult:
        if not self.base_url:
            return DeliveryResult.skipped('NOTIFY_API_BASE not set')
        if not id_token:
            return DeliveryResult.skipped('No identity token to forward')

        req = urllib.request.Request(
            f'{self.base_url}{path}',
            data=json.dumps(body).encode('utf-8'),
            method='POST',
        )
        req.add_header('Content-Type', 'application/json')
        req.add_header('Authorization', f'Bearer {id_token}')
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode('utf-8')
            return DeliveryResult.from_relay_response(json.loads(raw or '{}'))
        except urllib.error.HTTPError as e:
            try:
                text = e.read().decode('utf-8')
            except Exception:
                text = ''
            return DeliveryResult.failed(f'HTTP {e.code}: {text or e.reason}')
        except Exception as e:
            return DeliveryResult.failed(str(e) or e.__class__.__name__)

    def notify_claim_created(self, claim_id, caller_uid, id_token=None):
        return self._post('/notify/claim-created', {'claimId': claim_id}, id_token)

    def notify_claim_status(self, claim_id, caller_uid, id_token=None):
        return self._post('/notify/claim-status', {'claimId': claim_id}, id_token)


class InProcessDispatcher(NotificationDispatcher):
    """Runs the relay logic in this process, authorized as the calling user."""

    def __init__(self, relay):
        self.relay = relay

    def _run(self, handler, claim_id, caller_uid) -> DeliveryResult:
        try:
            return DeliveryResult.from_relay_response(handler(caller_uid, claim_id))
        except LostFoundError as e:
            return DeliveryResult.failed(f'{e.code}: {e.message}')
        except Exception as e:
            return DeliveryResult.failed(str(e) or e.__class__.__name__)

    def notify_claim_created(self, claim_id, caller_uid, id_token=None):
        return self._run(self.relay.claim_created, claim_id, caller_uid)

    def notify_claim_status(self, claim_id, caller_uid, id_token=None):
        return self._run(self.relay.claim_status, claim_id, caller_uid)


def log_delivery(event: str, claim_id: str, result: DeliveryResult):
    if result.status is DeliveryStatus.DELIVERED:
        _logger.info('%s notification for claim %s delivered: %s', event, claim_id, result.detail)
    elif result.status is DeliveryStatus.SKIPPED:
        _logger.info('%s notification for claim %s skipped: %s', event, claim_id, result.reason)
    else:
        _logger.warning('%s notification for claim %s failed: %s', event, claim_id, result.reason)


def build_dispatcher(config: Dict[str, Any], store=None) -> NotificationDispatcher:
    """Pick a dispatcher from config: in-process relay, HTTP relay, or none."""
    if config.get('notify_in_process') and store is not None:
        from .relay_service import NotificationRelay
        return InProcessDispatcher(NotificationRelay(store))
    if config.get('notify_api_base'):
        return RelayNotificationDispatcher(config['notify_api_base'], config.get('notify_timeout_seconds', 10.0))
    return NullDispatcher()
