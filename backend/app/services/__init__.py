"""
Services module for ServiceLane.

Each service is a stateless singleton obtained through its `get_*_service()`
accessor; methods take the request's AsyncSession as their first argument.
"""

from app.services.activity_service import ActivityService, get_activity_service
from app.services.audit_service import AuditService, get_audit_service
from app.services.auth_service import AuthService, get_auth_service
from app.services.email_service import EmailService, get_email_service
from app.services.job_service import JobService, get_job_service
from app.services.message_service import MessageService, get_message_service
from app.services.notification_gateway import ConnectionManager, get_connection_manager
from app.services.notification_service import NotificationService, get_notification_service
from app.services.platform_service import PlatformService, get_platform_service
from app.services.provider_service import ProviderService, get_provider_service
from app.services.quote_service import QuoteService, get_quote_service
from app.services.request_service import RequestService, get_request_service
from app.services.review_service import ReviewService, get_review_service
from app.services.vehicle_service import VehicleService, get_vehicle_service

__all__ = [
    "ActivityService",
    "get_activity_service",
    "AuditService",
    "get_audit_service",
    "AuthService",
    "get_auth_service",
    "EmailService",
    "get_email_service",
    "JobService",
    "get_job_service",
    "MessageService",
    "get_message_service",
    "ConnectionManager",
    "get_connection_manager",
    "NotificationService",
    "get_notification_service",
    "PlatformService",
    "get_platform_service",
    "ProviderService",
    "get_provider_service",
    "QuoteService",
    "get_quote_service",
    "RequestService",
    "get_request_service",
    "ReviewService",
    "get_review_service",
    "VehicleService",
    "get_vehicle_service",
]
