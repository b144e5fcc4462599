import uuid
from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TableStatus(str, Enum):
    FREE = "free"
    OCCUPIED = "occupied"


class DiningTable(Base):
    __tablename__ = "tables"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    status: Mapped[TableStatus] = mapped_column(
        SAEnum(TableStatus, name="tablestatus"), default=TableStatus.FREE, nullable=False
    )
