from agency_desk.models.activity import ActivityLog
from agency_desk.models.agency import Agency
from agency_desk.models.carrier import Carrier
from agency_desk.models.client import Client, ClientType
from agency_desk.models.conversation import AIConversation, AIMessage, MessageRole
from agency_desk.models.document import AIProcessingStatus, Document, DocumentType
from agency_desk.models.policy import LineOfBusiness, Policy, PolicyStatus
from agency_desk.models.user import PreferredLanguage, User, UserRole

__all__ = [
    "ActivityLog",
    "Agency",
    "AIConversation",
    "AIMessage",
    "AIProcessingStatus",
    "Carrier",
    "Client",
    "ClientType",
    "Document",
    "DocumentType",
    "LineOfBusiness",
    "MessageRole",
    "Policy",
    "PolicyStatus",
    "PreferredLanguage",
    "User",
    "UserRole",
]
