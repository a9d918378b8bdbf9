"""
Services層

ビジネスロジックとトランザクション管理を担当する層。

命名規則:
- ファイル名: snake_case (例: offboarding_service.py)
- クラス名: PascalCase (例: OffboardingService)
- インポート: クラスをインポート（インスタンスではなく）
"""

from .offboarding_service import OffboardingService

__all__ = [
    "OffboardingService",
]
