from pydantic import BaseModel, Field


class Money(BaseModel):
    amount: int = 0  # minor units, e.g. cents
    currency: str = ""

    @property
    def major_amount(self) -> float:
        return self.amount / 100.0


class Service(BaseModel):
    """An APPOINTMENTS_SERVICE catalog item reduced to its first variation."""

    id: str
    variation_id: str
    version: int = 0
    name: str
    description: str | None = None
    pricing_type: str | None = None
    price: Money | None = None
    image_url: str = ""
    team_member_ids: list[str] = Field(default_factory=list)

    def offered_by(self, team_member_id: str) -> bool:
        return team_member_id in self.team_member_ids


class TeamMember(BaseModel):
    id: str
    given_name: str | None = None
    family_name: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.given_name or ''} {self.family_name or ''}".strip()
