"""
Authentication Use Cases

All authentication-related business logic.
"""

from .login_use_case import LoginUseCase
from .step_up_use_case import StepUpUseCase
from .dtos import (
    LoginResponse,
    MeResponse,
    RefreshTokenResponse,
    StepUpResponse,
)

__all__ = [
    # Use Cases
    "LoginUseCase",
    "StepUpUseCase",
    # DTOs - Responses
    "LoginResponse",
    "MeResponse",
    "RefreshTokenResponse",
    "StepUpResponse",
]
