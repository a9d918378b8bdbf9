# flake8: noqa
from .enums import UserRole, OffboardingStatus, OffboardingActionType
from .organization import Organization
from .user import User
from .project import Project
from .task import Task, TaskAssignee
from .work_log import TimeEntry, Expense, Photo
from .offboarding import OffboardingRecord
from .user_data_archive import UserDataArchive
