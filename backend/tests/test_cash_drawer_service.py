import pytest

from kasir.models import CashDrawerEntryType
from kasir.services import cash_drawer_service
from kasir.validation import ValidationError


def _entry(entry_type, amount_cents, user, description="Kas"):
    return cash_drawer_service.create_entry(
        entry_type=entry_type,
        amount_cents=amount_cents,
        description=description,
        user_id=user.id,
    )


def test_empty_ledger_balance_is_zero(db_session):
    assert cash_drawer_service.get_balance() == 0


def test_balance_is_signed_sum(acting_user):
    _entry(CashDrawerEntryType.OPENING_BALANCE, 50000, acting_user, "Saldo awal")
    _entry(CashDrawerEntryType.IN, 25075, acting_user)
    _entry(CashDrawerEntryType.OUT, 10025, acting_user, "Beli plastik")
    _entry(CashDrawerEntryType.IN, 5000, acting_user)

    assert cash_drawer_service.get_balance() == 70050


def test_entries_listed_newest_first(acting_user):
    first = _entry(CashDrawerEntryType.OPENING_BALANCE, 10000, acting_user)
    second = _entry(CashDrawerEntryType.OUT, 100, acting_user)

    ids = [e.id for e in cash_drawer_service.list_entries()]
    assert ids == [second.id, first.id]


@pytest.mark.parametrize("amount_cents", [0, -500])
def test_non_positive_amount_rejected(acting_user, amount_cents):
    with pytest.raises(ValidationError):
        _entry(CashDrawerEntryType.IN, amount_cents, acting_user)
    assert cash_drawer_service.list_entries() == []


def test_blank_description_rejected(acting_user):
    with pytest.raises(ValidationError):
        _entry(CashDrawerEntryType.IN, 100, acting_user, description="   ")
