"""SQLAlchemy model for registered members."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base
from ..db.schemas import Member


class MemberRecord(Base):
    """A registered member. Card numbers are assigned, never reused."""

    __tablename__ = "members"

    library_card_number: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name_initial: Mapped[str] = mapped_column(String(5), default="")
    city: Mapped[str] = mapped_column(String(100), default="")
    neighborhood: Mapped[str] = mapped_column(String(100), default="")

    def __repr__(self) -> str:
        return f"<MemberRecord(card={self.library_card_number}, name={self.first_name})>"

    def to_schema(self) -> Member:
        return Member(
            first_name=self.first_name,
            last_name=self.last_name,
            last_name_initial=self.last_name_initial,
            city=self.city,
            neighborhood=self.neighborhood,
            library_card_number=self.library_card_number,
        )
