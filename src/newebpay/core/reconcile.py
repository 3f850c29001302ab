"""
Settlement reconciliation: moving a trade's captured amount to a target.

:func:`plan_retain` decides, from one queried snapshot, which close/cancel
calls are needed and in which order. :func:`retain` runs that plan through a
client one call at a time. Nothing here is transactional: if a later step
fails the trade is left wherever the earlier steps put it, and the caller has
to query again before deciding what to do next.

Decision table (``captured`` is CloseAmt, falling back to Amt):

================== ============================ =================================
CloseStatus        target                       calls
================== ============================ =================================
0 uncaptured       > 0                          capture(target)
0 uncaptured       0                            cancel authorization(Amt)
1/2/3              == captured                  none
1 capture pending  anything else                cancel capture(captured), then
                                                as for 0 (only on SUCCESS)
2/3 captured       < captured                   refund(captured - target)
================== ============================ =================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

from .errors import AmountExceedsAuthorization, AmountExceedsCapture
from .payloads import RequestedAt
from .responses import CloseStatus, CreditCardBehaviorResult, GatewayResponse, TradeSnapshot

if TYPE_CHECKING:
    from .client import GatewayClient
    from .credentials import MerchantCredentials

__all__ = [
    "SettlementAction",
    "SettlementOperation",
    "SettlementOutcome",
    "SettlementStep",
    "plan_retain",
    "refund_all",
    "retain",
]


class SettlementOperation(Enum):
    CAPTURE = "capture"
    CANCEL_CAPTURE = "cancel_capture"
    REFUND = "refund"
    CANCEL_AUTHORIZATION = "cancel_authorization"


@dataclass(frozen=True)
class SettlementAction:
    operation: SettlementOperation
    amount: int


@dataclass(frozen=True)
class SettlementStep:
    action: SettlementAction
    response: GatewayResponse[CreditCardBehaviorResult]


@dataclass(frozen=True)
class SettlementOutcome:
    """What :func:`retain` planned and what actually ran."""

    planned: Tuple[SettlementAction, ...]
    steps: Tuple[SettlementStep, ...] = ()

    @property
    def response(self) -> Optional[GatewayResponse[CreditCardBehaviorResult]]:
        """Response of the last call made, or ``None`` when nothing was needed."""
        return self.steps[-1].response if self.steps else None

    @property
    def is_noop(self) -> bool:
        return not self.planned

    @property
    def stopped_early(self) -> bool:
        return len(self.steps) < len(self.planned)

    @property
    def is_success(self) -> bool:
        return not self.stopped_early and all(step.response.is_success for step in self.steps)


def _capture_or_release(snapshot: TradeSnapshot, target_amount: int) -> SettlementAction:
    if target_amount > 0:
        return SettlementAction(SettlementOperation.CAPTURE, target_amount)
    return SettlementAction(SettlementOperation.CANCEL_AUTHORIZATION, snapshot.amount)


def plan_retain(snapshot: TradeSnapshot, target_amount: int) -> Tuple[SettlementAction, ...]:
    """
    Return the calls needed to bring ``snapshot`` to ``target_amount``.

    Raises before any call could be made: :class:`ValueError` for a negative
    or non-integer target, :class:`AmountExceedsAuthorization` when the
    target is above the authorized amount, :class:`InvalidCloseStatus` for an
    unknown CloseStatus and :class:`AmountExceedsCapture` when a settled
    trade would have to grow.
    """
    if isinstance(target_amount, bool) or not isinstance(target_amount, int):
        raise ValueError(f"Target amount must be an integer, got {target_amount!r}")
    if target_amount < 0:
        raise ValueError(f"Target amount must not be negative, got {target_amount}")
    if target_amount > snapshot.amount:
        raise AmountExceedsAuthorization(target_amount, snapshot.amount)

    state = snapshot.state
    if state is CloseStatus.UNCAPTURED:
        return (_capture_or_release(snapshot, target_amount),)

    captured = snapshot.captured_amount
    if target_amount == captured:
        return ()

    if state is CloseStatus.CAPTURE_PENDING:
        return (
            SettlementAction(SettlementOperation.CANCEL_CAPTURE, captured),
            _capture_or_release(snapshot, target_amount),
        )

    if target_amount > captured:
        raise AmountExceedsCapture(target_amount, captured)
    return (SettlementAction(SettlementOperation.REFUND, captured - target_amount),)


def _run(
    client: "GatewayClient",
    action: SettlementAction,
    merchant_order_no: str,
    merchant: Optional["MerchantCredentials"],
    requested_at: RequestedAt,
) -> GatewayResponse[CreditCardBehaviorResult]:
    operation = {
        SettlementOperation.CAPTURE: client.capture,
        SettlementOperation.CANCEL_CAPTURE: client.cancel_capture,
        SettlementOperation.REFUND: client.refund,
        SettlementOperation.CANCEL_AUTHORIZATION: client.cancel_authorization,
    }[action.operation]
    return operation(
        merchant_order_no,
        action.amount,
        merchant=merchant,
        requested_at=requested_at,
    )


def retain(
    client: "GatewayClient",
    snapshot: Union[TradeSnapshot, GatewayResponse[TradeSnapshot]],
    target_amount: int,
    *,
    merchant: Optional["MerchantCredentials"] = None,
    requested_at: RequestedAt = None,
) -> SettlementOutcome:
    """
    Drive the trade in ``snapshot`` toward ``target_amount``.

    A query response that is not ``SUCCESS`` raises :class:`RemoteRejected`.
    Calls run in order; the first one the gateway does not answer with
    ``SUCCESS`` ends the run and its response is the outcome's response.
    Transport and checksum errors propagate immediately.
    """
    if isinstance(snapshot, GatewayResponse):
        snapshot = snapshot.result_or_raise()

    planned = plan_retain(snapshot, target_amount)
    if not planned:
        logging.info(
            "Order %s already holds %s; nothing to reconcile",
            snapshot.merchant_order_no,
            target_amount,
        )
        return SettlementOutcome(planned=planned)

    steps = []
    for action in planned:
        logging.info(
            "Reconciling order %s: %s %s",
            snapshot.merchant_order_no,
            action.operation.value,
            action.amount,
        )
        response = _run(client, action, snapshot.merchant_order_no, merchant, requested_at)
        steps.append(SettlementStep(action=action, response=response))
        if not response.is_success:
            logging.warning(
                "Stopping reconciliation of order %s after %s answered %s: %s",
                snapshot.merchant_order_no,
                action.operation.value,
                response.status,
                response.message,
            )
            break

    return SettlementOutcome(planned=planned, steps=tuple(steps))


def refund_all(
    client: "GatewayClient",
    snapshot: Union[TradeSnapshot, GatewayResponse[TradeSnapshot]],
    *,
    merchant: Optional["MerchantCredentials"] = None,
    requested_at: RequestedAt = None,
) -> SettlementOutcome:
    """Release or refund everything: :func:`retain` with a target of zero."""
    return retain(client, snapshot, 0, merchant=merchant, requested_at=requested_at)
