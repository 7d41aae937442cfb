# Import every model so relationship() strings resolve and Base.metadata is complete
from app.models.events import Event
from app.models.registrations import Registration
from app.models.users import User

__all__ = ["Event", "Registration", "User"]
