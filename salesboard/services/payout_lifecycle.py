"""
Жизненный цикл выплат (награды и комиссии): pending -> approved -> paid.
Пропуск этапа и обратные переходы запрещены.
"""

from typing import Optional
from salesboard.core.constants import PayoutStatus
from salesboard.core.exceptions import InvalidStatusTransitionError
from salesboard.utils.date_utils import utcnow

_NEXT_STATUS = {
    PayoutStatus.PENDING.value: PayoutStatus.APPROVED.value,
    PayoutStatus.APPROVED.value: PayoutStatus.PAID.value,
}


def _ensure_transition(record, target_status: str) -> None:
    if _NEXT_STATUS.get(record.status) != target_status:
        raise InvalidStatusTransitionError(
            f"{record.__class__.__name__} {record.id}: переход "
            f"{record.status} -> {target_status} недопустим"
        )


def approve(record, approver_id: Optional[int]) -> None:
    _ensure_transition(record, PayoutStatus.APPROVED.value)
    record.status = PayoutStatus.APPROVED.value
    record.approved_by = approver_id
    record.approved_at = utcnow()


def pay(record) -> None:
    _ensure_transition(record, PayoutStatus.PAID.value)
    record.status = PayoutStatus.PAID.value
    record.paid_at = utcnow()


def ensure_pending(record) -> None:
    """Сумму к выплате можно править только до утверждения"""
    if record.status != PayoutStatus.PENDING.value:
        raise InvalidStatusTransitionError(
            f"{record.__class__.__name__} {record.id} в статусе {record.status}: "
            f"корректировка суммы невозможна"
        )
