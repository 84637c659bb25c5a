from __future__ import annotations

from dataclasses import dataclass

from .access.guard import AccessGuard
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.service import AuditService
from .core.constants import DEFAULT_AUDIT_RETRY_ATTEMPTS, DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .employees.lifecycle_service import LifecycleService
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.mysql_lifecycle_repository import MySQLLifecycleRepository
from .employees.service import EmployeeService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .onboarding.aggregator import OnboardingAggregator
from .onboarding.mysql_task_repository import MySQLTaskRepository
from .onboarding.mysql_template_repository import MySQLTemplateRepository
from .onboarding.service import OnboardingTaskService
from .onboarding.template_engine import TemplateEngine
from .onboarding.template_service import TemplateService
from .storage.blob_store import BlobStore, LocalBlobStore
from .support.mysql_ticket_repository import MySQLTicketRepository
from .support.service import SupportTicketService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    guard: AccessGuard
    blob_store: BlobStore

    employees_repo: MySQLEmployeeRepository
    lifecycle_repo: MySQLLifecycleRepository
    tasks_repo: MySQLTaskRepository
    templates_repo: MySQLTemplateRepository
    audit_repo: MySQLAuditRepository
    notifications_repo: MySQLNotificationRepository
    tickets_repo: MySQLTicketRepository

    audit_service: AuditService
    notification_service: NotificationService
    lifecycle_service: LifecycleService
    employee_service: EmployeeService
    task_service: OnboardingTaskService
    template_engine: TemplateEngine
    template_service: TemplateService
    aggregator: OnboardingAggregator
    support_service: SupportTicketService


def build_container(
    *,
    db_config: dict,
    upload_dir: str = "uploads",
    upload_base_url: str = "/uploads",
    audit_retry_attempts: int = DEFAULT_AUDIT_RETRY_ATTEMPTS,
    audit_retry_backoff_seconds: float = DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    guard = AccessGuard()
    blob_store = LocalBlobStore(upload_dir, upload_base_url)

    employees_repo = MySQLEmployeeRepository(conn)
    lifecycle_repo = MySQLLifecycleRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)
    templates_repo = MySQLTemplateRepository(conn)
    audit_repo = MySQLAuditRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    tickets_repo = MySQLTicketRepository(conn)

    audit_service = AuditService(
        audit_repo,
        guard,
        attempts=audit_retry_attempts,
        backoff_seconds=audit_retry_backoff_seconds,
    )
    notification_service = NotificationService(notifications_repo, guard)
    lifecycle_service = LifecycleService(lifecycle_repo, employees_repo, guard, audit_service)
    employee_service = EmployeeService(employees_repo, guard, audit_service, lifecycle_service)
    task_service = OnboardingTaskService(
        tasks_repo,
        employees_repo,
        guard,
        audit_service,
        notification_service,
        blob_store,
    )
    template_engine = TemplateEngine(
        templates_repo,
        tasks_repo,
        employees_repo,
        guard,
        audit_service,
        notification_service,
        lifecycle=lifecycle_service,
    )
    template_service = TemplateService(templates_repo, guard, audit_service)
    aggregator = OnboardingAggregator(tasks_repo, employees_repo, guard)
    support_service = SupportTicketService(tickets_repo, guard, audit_service, notification_service)

    return Container(
        conn=conn,
        guard=guard,
        blob_store=blob_store,
        employees_repo=employees_repo,
        lifecycle_repo=lifecycle_repo,
        tasks_repo=tasks_repo,
        templates_repo=templates_repo,
        audit_repo=audit_repo,
        notifications_repo=notifications_repo,
        tickets_repo=tickets_repo,
        audit_service=audit_service,
        notification_service=notification_service,
        lifecycle_service=lifecycle_service,
        employee_service=employee_service,
        task_service=task_service,
        template_engine=template_engine,
        template_service=template_service,
        aggregator=aggregator,
        support_service=support_service,
    )
