"""Principal abstraction for authenticated callers."""

from dataclasses import dataclass

from .core.enums import RoleName


@dataclass(frozen=True)
class Principal:
    """Identity resolved from a verified bearer token."""

    id: str
    role: RoleName

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN
