from app.models.lead import Lead, LeadStatus
from app.models.customer import ONE_TIME_FREQUENCY, Customer, CustomerStatus
from app.models.task import Task, TaskStatus
from app.models.goal import Goal, GoalStatus
from app.models.personal_best import PersonalBest, PersonalBestMetric

__all__ = [
    "Lead",
    "LeadStatus",
    "Customer",
    "CustomerStatus",
    "ONE_TIME_FREQUENCY",
    "Task",
    "TaskStatus",
    "Goal",
    "GoalStatus",
    "PersonalBest",
    "PersonalBestMetric",
]
