"""SQLAlchemy models for saved links."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from link_manager.db.session import Base
from link_manager.models.ordered import OrderedMixin


class Link(OrderedMixin, Base):
    """A bookmarked URL; ordered within its category."""

    __tablename__ = "link"
    __order_scope__ = "category_id"
    __collection_name__ = "links"
    __table_args__ = (
        UniqueConstraint("category_id", "position", name="uq_link_category_position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # 0-5 user rating.
    stars: Mapped[int] = mapped_column(default=0, nullable=False)
    click_count: Mapped[int] = mapped_column(default=0, nullable=False)
    last_clicked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
