"""
Station wallet operations.

Every balance change goes through ``credit_wallet`` / ``debit_wallet`` so
that each movement leaves a WalletTransaction with before/after snapshots.
Wallets are locked with select_for_update() for the duration of the change.
"""
import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction

from apps.stations.models import Station
from ..exceptions import InsufficientWalletBalanceError, InvalidAmountError
from ..models import StationWallet, WalletDirection, WalletTransaction

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def to_money(amount) -> Decimal:
    amount = Decimal(str(amount)).quantize(CENT)
    if amount <= 0:
        raise InvalidAmountError()
    return amount


def get_station_wallet(station: Station) -> StationWallet:
    """Return the station's wallet, creating an empty one on first use."""
    wallet, _ = StationWallet.objects.get_or_create(station=station)
    return wallet


def _lock_wallet(station_id: UUID) -> StationWallet:
    station = Station.objects.get(id=station_id)
    get_station_wallet(station)
    return (
        StationWallet.objects
        .select_for_update()
        .select_related('station')
        .get(station=station)
    )


@transaction.atomic
def credit_wallet(
    *,
    station_id: UUID,
    amount,
    source: str,
    reference: str = "",
    description: str = "",
    recorded_by=None,
) -> WalletTransaction:
    """Add money to a station wallet."""
    amount = to_money(amount)
    wallet = _lock_wallet(station_id)

    before = wallet.current_balance
    wallet.current_balance = before + amount
    wallet.save(update_fields=['current_balance', 'updated_at'])

    entry = WalletTransaction.objects.create(
        wallet=wallet,
        direction=WalletDirection.CREDIT,
        source=source,
        amount=amount,
        balance_before=before,
        balance_after=wallet.current_balance,
        reference=reference,
        description=description,
        recorded_by=recorded_by,
    )
    logger.info(
        'Wallet credited',
        extra={'station_id': str(station_id), 'amount': str(amount), 'source': source,
               'balance_after': str(wallet.current_balance)},
    )
    return entry


@transaction.atomic
def debit_wallet(
    *,
    station_id: UUID,
    amount,
    source: str,
    reference: str = "",
    description: str = "",
    recorded_by=None,
) -> WalletTransaction:
    """
    Take money out of a station wallet.

    Raises:
        InsufficientWalletBalanceError: The wallet would go negative
    """
    amount = to_money(amount)
    wallet = _lock_wallet(station_id)

    before = wallet.current_balance
    if amount > before:
        raise InsufficientWalletBalanceError(
            f'Station wallet balance ({before}) is insufficient for {amount}.'
        )

    wallet.current_balance = before - amount
    wallet.save(update_fields=['current_balance', 'updated_at'])

    entry = WalletTransaction.objects.create(
        wallet=wallet,
        direction=WalletDirection.DEBIT,
        source=source,
        amount=amount,
        balance_before=before,
        balance_after=wallet.current_balance,
        reference=reference,
        description=description,
        recorded_by=recorded_by,
    )
    logger.info(
        'Wallet debited',
        extra={'station_id': str(station_id), 'amount': str(amount), 'source': source,
               'balance_after': str(wallet.current_balance)},
    )
    return entry
