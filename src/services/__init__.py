from src.services import (
    access_policy,
    analytics_service,
    report_service,
    task_service,
    task_state_machine,
    user_service,
)


__all__ = [
    "access_policy",
    "analytics_service",
    "report_service",
    "task_service",
    "task_state_machine",
    "user_service",
]
