"""
Deal model for the sales pipeline.
"""
import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SAEnum, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from dealdesk.core.base import Base


class DealStage(str, enum.Enum):
    """Pipeline stages."""
    NEW = "New"
    IN_PROGRESS = "In Progress"
    WON = "Won"
    LOST = "Lost"


# Fixed-point type shared by storage and aggregation: 15 digits, 2 fractional
MONEY = Numeric(15, 2, asdecimal=True)


class Deal(Base):
    """A sales opportunity tracked through the pipeline."""
    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_deals_value_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    stage: Mapped[DealStage] = mapped_column(
        SAEnum(
            DealStage,
            name="deal_stage",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
        default=DealStage.NEW,
        server_default=DealStage.NEW.value,
        index=True,
    )

    value: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        default=Decimal("0.00"),
        server_default="0.00",
        index=True,
    )

    # Set by the store at insert, never written by the application
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    close_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Deal id={self.id} name={self.name!r} stage={self.stage.value if self.stage else None}>"
