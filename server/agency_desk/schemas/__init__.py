from agency_desk.schemas.auth import RegistrationRequest, TokenResponse
from agency_desk.schemas.client import ClientCollection, ClientCreate, ClientRead, ClientUpdate
from agency_desk.schemas.document import DocumentCollection, DocumentCreate, DocumentRead, DocumentUpdate
from agency_desk.schemas.integration import IntegrationActionRequest, IntegrationCollection, IntegrationRead
from agency_desk.schemas.policy import PolicyCollection, PolicyCreate, PolicyRead, PolicyUpdate
from agency_desk.schemas.user import ProfileUpdate, TeamMember, UserInvite, UserRead, UserRoleUpdate

__all__ = [
    "ClientCollection",
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    "DocumentCollection",
    "DocumentCreate",
    "DocumentRead",
    "DocumentUpdate",
    "IntegrationActionRequest",
    "IntegrationCollection",
    "IntegrationRead",
    "PolicyCollection",
    "PolicyCreate",
    "PolicyRead",
    "PolicyUpdate",
    "ProfileUpdate",
    "RegistrationRequest",
    "TeamMember",
    "TokenResponse",
    "UserInvite",
    "UserRead",
    "UserRoleUpdate",
]
