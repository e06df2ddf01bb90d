from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageOut(BaseModel):
    message: str


class SubmitRegistrationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Registration successful"
    transaction_id: str = Field(..., alias="transactionId")
    qrcode_image: str = Field(..., alias="qrcodeImage")
    auth_uri: str = Field(..., alias="authUri")


class RegistrationResultOut(BaseModel):
    message: Literal["Registration completed", "Waiting for registration"]
    data: Optional[dict[str, Any]] = None


class RegisterInfoOut(BaseModel):
    email: str


class RegisterTokenOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    visitor_email: str = Field(..., alias="visitorEmail")


class CronTriggerOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    ran: bool
    triggered_at: datetime = Field(..., alias="triggeredAt")
