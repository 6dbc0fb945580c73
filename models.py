from pydantic import BaseModel, Field
from enum import Enum
from typing import Literal, Union
from datetime import datetime


class TransactionType(str, Enum):
    payment = "PAYMENT"


class TransactionStatus(str, Enum):
    success = "SUCCESS"
    failed = "FAILED"


class PaymentMethod(str, Enum):
    shopeepay = "SHOPEEPAY"


class PaymentRequest(BaseModel):
    user_id: int = Field(..., strict=True, description="External user identifier")
    amount: float = Field(..., strict=True, description="Payment amount, no currency unit")
    description: str = Field(..., description="Payment description")
    phone_number: str = Field(..., description="Phone number registered with ShopeePay")


class Account(BaseModel):
    id: str = Field(..., description="Unique account identifier")
    user_id: int = Field(..., description="Owner of the account")
    balance: float = Field(..., description="Current account balance")


class Transaction(BaseModel):
    id: str = Field(..., description="Unique transaction identifier")
    user_id: int
    account_id: str
    type: TransactionType
    amount: float
    balance_before: float
    balance_after: float
    status: TransactionStatus
    method: PaymentMethod
    description: str
    created_at: datetime
    message: str

    class Config:
        frozen = True


class PaymentRejection(BaseModel):
    status: Literal["FAILED"] = Field("FAILED", description="Payment status")
    message: str = Field(..., description="Rejection reason")
    id: str = Field(..., description="Reference identifier for the rejected request")
    amount: float = Field(..., description="Requested amount")


# Outcome of a single payment request
PaymentResult = Union[Transaction, PaymentRejection]


class InvalidRequestResponse(BaseModel):
    status: Literal["FAILED"] = "FAILED"
    message: str = "Invalid request body"


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error description")
    error_code: str = Field(..., description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status")
    timestamp: datetime = Field(default_factory=datetime.now)
    accounts_count: int = Field(..., description="Number of accounts in system")
    transactions_processed: int = Field(..., description="Total transactions processed")
