"""
app/schemas/auth.py

Purpose: Request/response bodies for the verification endpoints

- camelCase on the wire, snake_case in Python
- Request fields are optional so missing values get the service's
  400 messages instead of framework validation errors
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RequestVerificationIn(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"phoneNumber": "+14155550123"}},
    )

    phone_number: Optional[str] = Field(None, alias="phoneNumber", description="Phone number as entered by the user")


class RequestVerificationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    code_id: str = Field(..., alias="codeId", description="Opaque handle for the issued code")


class VerifyCodeIn(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "codeId": "Qm9vZ2llV29vZ2llMTIz",
                "code": "123456",
                "firstName": "Ada",
                "lastName": "Lovelace"
            }
        },
    )

    code_id: Optional[str] = Field(None, alias="codeId")
    code: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")


class VerifyCodeOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user_id: str = Field(..., alias="userId")
    custom_token: str = Field(..., alias="customToken", description="Signed identity token")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
