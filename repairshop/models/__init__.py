from repairshop.models.user import User
from repairshop.models.workspace import Workspace
from repairshop.models.workspace_member import WorkspaceMember
from repairshop.models.repair import Repair
from repairshop.models.repair_activity import RepairActivity
