"""自我破坏者测评相关模型"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.sql import Base

if TYPE_CHECKING:
    from app.models.user import User


class LevelLabel(str, enum.Enum):
    """得分等级"""

    low = "Low"  # 低
    moderate = "Moderate"  # 中
    high = "High"  # 高


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    # 库中保存 Low / Moderate / High，而不是成员名
    return [member.value for member in enum_cls]


class Dimension(Base):
    """测评维度（一种自我破坏者类型），参考数据"""

    __tablename__ = "dimensions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, comment="维度代码，用于导入匹配")
    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="维度名称")
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="维度配图URL")

    # 关系
    questions: Mapped[list["CatalogQuestion"]] = relationship(
        "CatalogQuestion", back_populates="dimension", order_by="CatalogQuestion.id"
    )
    descriptions: Mapped[list["LevelDescription"]] = relationship("LevelDescription", back_populates="dimension")


class CatalogQuestion(Base):
    """题目，隶属于唯一的维度"""

    __tablename__ = "catalog_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    dimension_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("dimensions.id", ondelete="RESTRICT"), nullable=False, index=True, comment="维度ID"
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, comment="题目内容")

    # 关系
    dimension: Mapped["Dimension"] = relationship("Dimension", back_populates="questions")
    answers: Mapped[list["InventoryAnswer"]] = relationship("InventoryAnswer", back_populates="question")

    __table_args__ = (Index("idx_catalog_question_dimension_id", "dimension_id"),)


class LevelDescription(Base):
    """维度 + 等级对应的描述文本，参考数据"""

    __tablename__ = "level_descriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    dimension_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("dimensions.id", ondelete="RESTRICT"), nullable=False, index=True, comment="维度ID"
    )
    level: Mapped[LevelLabel] = mapped_column(
        Enum(LevelLabel, name="level_label", values_callable=_enum_values), nullable=False, comment="等级"
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, comment="描述")

    # 关系
    dimension: Mapped["Dimension"] = relationship("Dimension", back_populates="descriptions")

    __table_args__ = (UniqueConstraint("dimension_id", "level", name="uq_level_description_dimension_level"),)


class InventoryAnswer(Base):
    """用户对某道题的作答，每个 (用户, 题目) 仅一条"""

    __tablename__ = "inventory_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, comment="用户ID"
    )
    question_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("catalog_questions.id", ondelete="RESTRICT"), nullable=False, index=True, comment="题目ID"
    )
    response: Mapped[int] = mapped_column(Integer, nullable=False, comment="作答值(1-5)")

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
    user: Mapped["User"] = relationship("User", back_populates="inventory_answers")
    question: Mapped["CatalogQuestion"] = relationship("CatalogQuestion", back_populates="answers")

    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_inventory_answer_user_question"),
        CheckConstraint("response BETWEEN 1 AND 5", name="ck_inventory_answer_response_range"),
        Index("idx_inventory_answer_user_id", "user_id"),
    )


class InventoryResult(Base):
    """按 (用户, 维度) 汇总的测评结果"""

    __tablename__ = "inventory_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True, comment="主键ID")
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, comment="用户ID"
    )
    dimension_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("dimensions.id", ondelete="RESTRICT"), nullable=False, index=True, comment="维度ID"
    )
    score: Mapped[float] = mapped_column(Float, nullable=False, comment="平均分(未取整)")
    level: Mapped[LevelLabel] = mapped_column(
        Enum(LevelLabel, name="level_label", values_callable=_enum_values), nullable=False, comment="等级"
    )
    description_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("level_descriptions.id", ondelete="RESTRICT"), nullable=False, comment="等级描述ID"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=sqlalchemy.func.now(),
        onupdate=sqlalchemy.func.now(),
        comment="更新时间",
    )

    # 关系
    user: Mapped["User"] = relationship("User", back_populates="inventory_results")
    dimension: Mapped["Dimension"] = relationship("Dimension")
    description: Mapped["LevelDescription"] = relationship("LevelDescription")

    __table_args__ = (
        UniqueConstraint("user_id", "dimension_id", name="uq_inventory_result_user_dimension"),
        Index("idx_inventory_result_user_id", "user_id"),
    )
