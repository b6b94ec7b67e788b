from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy
from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.sql import Base

if TYPE_CHECKING:
    from app.models.assessment import InventoryResult
    from app.models.user import User


class CollaboratorProfile(Base):
    """员工档案。

    inventory_result_id 是为读取加速而冗余的指针，真实数据以 inventory_results 为准。
    """

    __tablename__ = "collaborator_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True, comment="用户ID"
    )
    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="个人简介")
    inventory_result_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("inventory_results.id", ondelete="SET NULL"),
        nullable=True,
        comment="最近一次自我破坏者测评结果",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=sqlalchemy.func.now(),
        comment="创建时间",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=sqlalchemy.func.now(),
        onupdate=sqlalchemy.func.now(),
        comment="更新时间",
    )

    # 关系
    user: Mapped["User"] = relationship("User", back_populates="profile")
    inventory_result: Mapped[Optional["InventoryResult"]] = relationship("InventoryResult")

    __table_args__ = (Index("idx_collaborator_profile_user_id", "user_id"),)
