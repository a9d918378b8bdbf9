from . import offboarding, user_data_archive
from .token import TokenData
from .offboarding import (
    OffboardingOptions,
    OffboardingAction,
    OffboardingReport,
    ImpactPreview,
    OffboardingCreate,
    OffboardingRead,
    OffboardingListResponse,
    OffboardingExecuteResponse
)
from .user_data_archive import (
    ArchivedCollection,
    ActivitySummary,
    UserDataArchiveCreate,
    UserDataArchiveRead
)
