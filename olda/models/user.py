from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer
from olda.db import Base
from olda.utils.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # имя, которое видят коллеги (подпись в заявках PRT, аудит статусов)
    display_name: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=UserRole.STAFF.value
    )
