"""Authentication DTOs."""
from pydantic import BaseModel, Field, field_validator


class LoginDTO(BaseModel):
    """DTO for the admin login form."""

    login: str = Field(..., min_length=1, max_length=255, description="Admin login")
    password: str = Field(..., min_length=1, max_length=255, description="Admin password")

    @field_validator('login')
    @classmethod
    def strip_login(cls, v: str) -> str:
        """Login is compared without surrounding whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Логин не может быть пустым")
        return v
