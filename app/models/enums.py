import enum

class UserRole(str, enum.Enum):
    owner = 'owner'            # 事業主
    pm = 'pm'                  # プロジェクトマネージャー
    employee = 'employee'      # W2従業員
    contractor = 'contractor'  # 1099契約者
    sub = 'sub'                # 下請業者
    client = 'client'          # 施主

class OffboardingStatus(str, enum.Enum):
    pending = 'pending'            # 作成済み・未実行
    in_progress = 'in_progress'    # 実行中
    completed = 'completed'        # 全アクション成功
    failed = 'failed'              # いずれかのアクションが失敗、または予期しないエラー

class OffboardingActionType(str, enum.Enum):
    """オフボーディングで実行されるアクションの種類"""
    revoke_access = 'revoke_access'
    reassign_task = 'reassign_task'
    transfer_project = 'transfer_project'
    archive_data = 'archive_data'
