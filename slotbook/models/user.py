from dataclasses import dataclass

from sqlmodel import Field, SQLModel


class UserRow(SQLModel, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)

    def to_entity(self) -> "User":
        return User(id=self.id, name=self.name, email=self.email)


@dataclass(frozen=True)
class User:
    """Read-only view of a user; the scheduling service never mutates users."""

    id: int
    name: str
    email: str
