"""
日本語エラーメッセージ定数

アプリケーション全体で使用される日本語のエラーメッセージを一元管理します。
"""

# ==========================================
# 権限関連 (deps.py)
# ==========================================

PERM_CREDENTIALS_INVALID = "認証情報を検証できません"
PERM_OWNER_REQUIRED = "組織のオーナー権限が必要です"
PERM_ACCOUNT_DEACTIVATED = "このアカウントは無効化されています"

# ==========================================
# オフボーディング関連 (offboardings.py)
# ==========================================

# 対象ユーザーの検証
OFFBOARDING_USER_NOT_FOUND = "対象ユーザーが見つかりません"
OFFBOARDING_CANNOT_OFFBOARD_SELF = "自分自身をオフボーディングすることはできません"
OFFBOARDING_CANNOT_OFFBOARD_OWNER = "組織のオーナーはオフボーディングできません"
OFFBOARDING_USER_ALREADY_INACTIVE = "このユーザーは既に無効化されています"
OFFBOARDING_REASSIGN_TARGET_INVALID = "引き継ぎ先ユーザーは同じ組織の有効なメンバーである必要があります"
OFFBOARDING_REASSIGN_TARGET_SAME_USER = "引き継ぎ先に対象ユーザー自身は指定できません"

# ワークフロー
OFFBOARDING_NOT_FOUND = "オフボーディング記録が見つかりません"
OFFBOARDING_ALREADY_IN_PROGRESS = "このユーザーのオフボーディングは既に進行中です"
OFFBOARDING_NOT_PENDING = "オフボーディングは保留中の状態からのみ実行できます"
OFFBOARDING_EXECUTION_FAILED = "オフボーディングの実行中にエラーが発生しました"

# 復元
OFFBOARDING_NOT_COMPLETED = "完了したオフボーディングのみ復元できます"
OFFBOARDING_RESTORE_WINDOW_EXPIRED = "復元期限（30日間）を過ぎています"
OFFBOARDING_ALREADY_RESTORED = "このユーザーは既に復元されています"

# ==========================================
# 共通例外メッセージ (exceptions.py)
# ==========================================

EXC_BAD_REQUEST = "不正なリクエストです"
EXC_NOT_FOUND = "見つかりません"
EXC_FORBIDDEN = "アクセスが拒否されました"
EXC_CONFLICT = "リソースの状態が競合しています"
EXC_GONE = "リソースは既に利用できません"
EXC_INTERNAL_ERROR = "サーバー内部エラーが発生しました"
