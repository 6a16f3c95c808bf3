from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from phoneshop.models.user import UserRole


class SignUpRequest(BaseModel):
    email: str = Field(min_length=5, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    username: str = Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    password: str = Field(min_length=10, max_length=128)


class SignUpResponse(BaseModel):
    user_id: int
    email: str
    username: str
    role: UserRole
    message: str


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identity: str = Field(min_length=1, max_length=320, description="Email or username")
    password: str = Field(min_length=1, max_length=128)

    @model_validator(mode="before")
    @classmethod
    def accept_email_or_username_field(cls, data):
        if not isinstance(data, dict) or data.get("identity"):
            return data
        for key in ("email", "username"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return {**data, "identity": value}
        return data

    @field_validator("identity")
    @classmethod
    def normalize_identity(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("identity must not be empty")
        return normalized


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    refresh_token: str = Field(
        min_length=20,
        max_length=512,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
    )


class LogoutRequest(RefreshRequest):
    pass


class RoleUpdateRequest(BaseModel):
    role: UserRole


class GenericMessageResponse(BaseModel):
    message: str
