from app.models.audit_log import AuditLog
from app.models.event_outbox import EventOutbox
from app.models.material import Material
from app.models.material_request import MaterialRequest, MaterialRequestItem, RequestStatus
from app.models.project import Project
from app.models.service import Service
from app.models.task import Task, TaskStatus
from app.models.task_service import TaskServiceBinding
from app.models.user import User

__all__ = [
    "AuditLog",
    "EventOutbox",
    "Material",
    "MaterialRequest",
    "MaterialRequestItem",
    "Project",
    "RequestStatus",
    "Service",
    "Task",
    "TaskServiceBinding",
    "TaskStatus",
    "User",
]
