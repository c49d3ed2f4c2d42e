from taskflow.models.category import Category
from taskflow.models.profile import Profile
from taskflow.models.task import Task
from taskflow.models.task_comment import TaskComment
from taskflow.models.task_history import TaskHistory
from taskflow.models.team import Team
from taskflow.models.team_member import TeamMember

__all__ = ["Profile", "Team", "TeamMember", "Category", "Task", "TaskComment", "TaskHistory"]
