from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import (
    DeclarativeBase
)

# 1. 全てのモデルが継承するためのBaseクラスを定義
class Base(DeclarativeBase):
    pass

# 2. JSON列の型（PostgreSQLではJSONB、テスト用SQLiteではJSON）
JSONVariant = JSON().with_variant(JSONB(), "postgresql")
