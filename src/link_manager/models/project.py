"""SQLAlchemy models for projects, the top-level link collections."""

from sqlalchemy import BigInteger, Boolean, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from link_manager.db.session import Base
from link_manager.models.ordered import OrderedMixin


class Project(OrderedMixin, Base):
    """A user's project; ordered among the projects of the same owner."""

    __tablename__ = "project"
    __order_scope__ = "owner_id"
    __collection_name__ = "projects"
    __table_args__ = (
        UniqueConstraint("owner_id", "position", name="uq_project_owner_position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Marks the project created for a new owner.
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
