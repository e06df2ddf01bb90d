from pydantic import BaseModel, EmailStr, Field


class SendCodeIn(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)


class SubmitRegistrationIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=64)
    company: str = Field(..., min_length=1, max_length=255)
    otp: str = Field(..., min_length=6, max_length=6)
    token: str = Field(..., min_length=1, max_length=128)


class CreateTokenIn(BaseModel):
    email: EmailStr = Field(..., description="Visitor the invitation is for")
