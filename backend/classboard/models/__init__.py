from classboard.models.user import User, Role
from classboard.models.diagram import Diagram, diagram_shares

__all__ = ["User", "Role", "Diagram", "diagram_shares"]
