from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy
from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.sql import Base

if TYPE_CHECKING:
    from app.models.assessment import InventoryAnswer, InventoryResult
    from app.models.profile import CollaboratorProfile


class User(Base):
    """平台用户（认证由外部服务负责，这里只保留测评需要的字段）"""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="姓名")
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True, comment="邮箱")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, comment="账户状态")
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, comment="最后登录时间")

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
    inventory_answers: Mapped[list["InventoryAnswer"]] = relationship("InventoryAnswer", back_populates="user")
    inventory_results: Mapped[list["InventoryResult"]] = relationship("InventoryResult", back_populates="user")
    profile: Mapped[Optional["CollaboratorProfile"]] = relationship(
        "CollaboratorProfile", back_populates="user", uselist=False
    )

    __table_args__ = (
        Index("idx_user_email", "email"),
        Index("idx_user_created_at", "created_at"),
    )
