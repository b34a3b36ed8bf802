from typing import Optional

from .base import CamelModel


class ApplicantSummary(CamelModel):
    # Projection of an account owned by the user service
    id: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
