import datetime as dt
from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from .db import Base


class Report(Base):
    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    work_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, index=True)

    status: Mapped[str] = mapped_column(String, nullable=False)  # Pending / Processing / Completed / Failed
    has_plagiarism: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    plagiarism_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    # порядок ключей = ранжирование по частоте
    word_frequency: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    warnings: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    archive_path: Mapped[str | None] = mapped_column(String, nullable=True)
