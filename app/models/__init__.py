# Import all models to ensure they are registered with SQLAlchemy

# 自我破坏者测评
from app.models.assessment import (
    CatalogQuestion,
    Dimension,
    InventoryAnswer,
    InventoryResult,
    LevelDescription,
    LevelLabel,
)

# 员工档案
from app.models.profile import CollaboratorProfile

# 用户相关
from app.models.user import User

__all__ = [
    # 用户相关
    "User",
    # 员工档案
    "CollaboratorProfile",
    # 自我破坏者测评
    "Dimension",
    "CatalogQuestion",
    "LevelDescription",
    "LevelLabel",
    "InventoryAnswer",
    "InventoryResult",
]
