from pydantic import BaseModel, ConfigDict

class CurrentUser(BaseModel):
    """The authenticated caller, as seen by the exam engine."""
    id: int
    display_name: str
    email: str
    is_admin: bool = False

    model_config = ConfigDict(from_attributes=True)
