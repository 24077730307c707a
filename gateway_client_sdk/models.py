from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GatewayModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProfileResponse(GatewayModel):
    username: str
    role: str | None = None
    totp_enabled: bool = Field(default=False, alias="totpEnabled")
    email: str | None = None
    phone: str | None = None

    @field_validator("role")
    @classmethod
    def _normalize_role(cls, value: str | None) -> str | None:
        normalized = (value or "").strip().lower()
        return normalized or None


class FeaturesResponse(GatewayModel):
    signup_enabled: bool = Field(default=True, alias="signupEnabled")
    sms_enabled: bool = Field(default=False, alias="smsEnabled")
    email_enabled: bool = Field(default=False, alias="emailEnabled")
    username_is_email: bool = Field(default=True, alias="usernameIsEmail")


class TotpSetupResponse(GatewayModel):
    secret: str
    otp_url: str = Field(alias="otpUrl")
    qr_png: str | None = Field(default=None, alias="qrPng")


class OkResponse(GatewayModel):
    ok: bool = True
    message: str | None = None


class AuthCheckResponse(GatewayModel):
    authenticated: bool = False
    username: str | None = None


class LogoutResponse(GatewayModel):
    ok: bool = True
    redirect_url: str | None = Field(default=None, alias="redirectUrl")


class SignupResponse(GatewayModel):
    ok: bool = True
    status: str | None = None


class LivenessResponse(GatewayModel):
    running: bool = False
