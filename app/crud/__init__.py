from .crud_user import user
from .crud_task import task
from .crud_project import project
from .crud_work_item import work_item
from .crud_offboarding import offboarding
from .crud_user_data_archive import user_data_archive
