"""SO Center wallet credit for collected student payments (listener on PaymentApplied)."""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker

from academy_billing.core.enums import WalletTransactionType
from academy_billing.core.events import PaymentApplied, PaymentListener
from academy_billing.core.models import SoCenter, WalletTransaction
from academy_billing.core.money import quantize
from academy_billing.core.retry import with_retries

logger = logging.getLogger(__name__)


def make_wallet_listener(session_factory: async_sessionmaker) -> PaymentListener:
    """Build a listener that credits the student's SO Center with the collected amount."""

    async def _credit_once(event: PaymentApplied) -> None:
        async with session_factory() as db:
            amount = quantize(event.amount)
            credited = await db.execute(
                update(SoCenter)
                .where(SoCenter.id == event.so_center_id)
                .values(wallet_balance=SoCenter.wallet_balance + amount)
            )
            if credited.rowcount != 1:
                await db.rollback()
                logger.warning("SO center %s not found for payment %s", event.so_center_id, event.payment_id)
                return
            db.add(
                WalletTransaction(
                    so_center_id=event.so_center_id,
                    payment_id=event.payment_id,
                    amount=amount,
                    type=WalletTransactionType.CREDIT.value,
                    description=f"Student fee collection - receipt {event.receipt_number}",
                )
            )
            await db.commit()
            logger.info("Credited SO center %s wallet with %s for payment %s",
                        event.so_center_id, amount, event.payment_id)

    async def credit_so_center_wallet(event: PaymentApplied) -> None:
        if event.so_center_id is None:
            return
        await with_retries(
            lambda: _credit_once(event),
            description=f"Wallet credit for payment {event.payment_id}",
        )

    return credit_so_center_wallet
