import uuid
from datetime import datetime
from zoneinfo import ZoneInfo
from typing import AbstractSet
import structlog

from models import (
    PaymentMethod,
    PaymentRejection,
    PaymentRequest,
    PaymentResult,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from repositories import LedgerStore

logger = structlog.get_logger()

REJECTION_MESSAGE = "Nomor Telepon tidak terdaftar di ShopeePay."
SUCCESS_MESSAGE = "Transaksi Berhasil"


class PaymentService:
    def __init__(
        self,
        ledger_store: LedgerStore,
        allowed_phone_numbers: AbstractSet[str],
        timezone: str = "Asia/Jakarta"
    ):
        self.ledger_store = ledger_store
        self.allowed_phone_numbers = frozenset(allowed_phone_numbers)
        self.timezone = ZoneInfo(timezone)

    async def process_payment(self, request: PaymentRequest) -> PaymentResult:
        """Process a ShopeePay payment.

        Returns a PaymentRejection when the phone number is not registered,
        otherwise the recorded Transaction. The account balance is snapshotted
        but not debited.
        """

        logger.info(
            "Processing payment",
            user_id=request.user_id,
            amount=request.amount,
            phone_number=request.phone_number
        )

        # Allow-list check through recording runs as one critical section
        async with self.ledger_store.get_lock():
            if request.phone_number not in self.allowed_phone_numbers:
                rejection = PaymentRejection(
                    message=REJECTION_MESSAGE,
                    id=str(uuid.uuid4()),
                    amount=request.amount
                )
                logger.warning(
                    "Payment rejected, phone number not registered",
                    user_id=request.user_id,
                    phone_number=request.phone_number,
                    reference_id=rejection.id
                )
                return rejection

            account = await self.ledger_store.get_or_create_account(request.user_id)

            transaction = Transaction(
                id=str(uuid.uuid4()),
                user_id=request.user_id,
                account_id=account.id,
                type=TransactionType.payment,
                amount=request.amount,
                balance_before=account.balance,
                balance_after=account.balance,
                status=TransactionStatus.success,
                method=PaymentMethod.shopeepay,
                description=request.description,
                created_at=datetime.now(self.timezone),
                message=SUCCESS_MESSAGE
            )

            await self.ledger_store.record_transaction(transaction)

        logger.info(
            "Payment recorded successfully",
            transaction_id=transaction.id,
            account_id=account.id,
            user_id=request.user_id,
            balance=account.balance
        )

        return transaction


# Factory function for dependency injection
def get_payment_service(
    ledger_store: LedgerStore,
    allowed_phone_numbers: AbstractSet[str],
    timezone: str = "Asia/Jakarta"
) -> PaymentService:
    return PaymentService(ledger_store, allowed_phone_numbers, timezone)
