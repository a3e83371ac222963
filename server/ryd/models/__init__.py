from .user import User, UserAuditLog  # noqa: F401
from .project import Project, ProjectMember  # noqa: F401
from .task import Task, TaskAssignee, TaskComment, TaskTeam, TimeEntry  # noqa: F401
from .team import Team, UserTeam  # noqa: F401
from .finance import FinancialTransaction  # noqa: F401
from .document import Document, DocumentCategory  # noqa: F401
