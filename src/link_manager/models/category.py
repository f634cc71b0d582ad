"""SQLAlchemy models for categories inside a project."""

from sqlalchemy import Boolean, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from link_manager.db.session import Base
from link_manager.models.ordered import OrderedMixin


class Category(OrderedMixin, Base):
    """A category grouping links; ordered within its project."""

    __tablename__ = "category"
    __order_scope__ = "project_id"
    __collection_name__ = "categories"
    __table_args__ = (
        UniqueConstraint("project_id", "position", name="uq_category_project_position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Marks the category created together with its project.
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
