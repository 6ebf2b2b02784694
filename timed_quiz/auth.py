"""
Authentication collaborator used when results are submitted and quizzes managed.
"""
from abc import ABC, abstractmethod
from typing import Optional

from .models import User


class AuthProvider(ABC):
    """Source of the currently signed-in user."""

    @abstractmethod
    def current_user(self) -> Optional[User]:
        """Return the signed-in user, or None."""

    @property
    def is_loading(self) -> bool:
        return False


class StaticAuthProvider(AuthProvider):
    """Auth provider with a fixed user that can be swapped at runtime."""

    def __init__(self, user: Optional[User] = None):
        self._user = user

    def current_user(self) -> Optional[User]:
        return self._user

    def sign_in(self, user: User) -> None:
        self._user = user

    def sign_out(self) -> None:
        self._user = None
