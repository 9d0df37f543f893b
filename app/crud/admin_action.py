from app.crud.base import CRUDBase
from app.models.admin_action import AdminAction

class CRUDAdminAction(CRUDBase[AdminAction, dict, dict]):
    pass

admin_action = CRUDAdminAction(AdminAction)
