"""Data models for Codex OAuth login"""

import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _isoformat(value: Optional[datetime.datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PkceCodes:
    """PKCE (Proof Key for Code Exchange) codes for one login flow

    Attributes:
        code_verifier: Random string, redeemed at the token endpoint
        code_challenge: SHA256 hash of code_verifier, sent in auth request
    """
    code_verifier: str
    code_challenge: str


@dataclass(frozen=True)
class OAuthLoginInfo:
    """What the caller needs to send the user to the provider

    Attributes:
        auth_url: Authorization URL to open in the browser
        callback_port: Loopback port the callback server is bound to
    """
    auth_url: str
    callback_port: int

    def to_dict(self) -> Dict[str, Any]:
        return {"auth_url": self.auth_url, "callback_port": self.callback_port}


@dataclass(frozen=True)
class TokenResponse:
    """Tokens returned by the provider's token endpoint"""
    id_token: str
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class IdTokenClaims:
    """Profile fields read from the ID token payload"""
    email: Optional[str] = None
    plan_type: Optional[str] = None
    account_id: Optional[str] = None


class AuthMode(str, Enum):
    """Authentication mode of a stored account"""
    API_KEY = "api_key"
    CHATGPT = "chatgpt"


@dataclass
class ChatGPTAuthData:
    """OAuth credentials of a ChatGPT-mode account

    Attributes:
        id_token: JWT ID token containing user identity
        access_token: Bearer token for API authentication
        refresh_token: Token for refreshing expired access tokens
        account_id: ChatGPT account identifier, when the ID token carries one
    """
    id_token: str
    access_token: str
    refresh_token: str
    account_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": AuthMode.CHATGPT.value,
            "id_token": self.id_token,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "account_id": self.account_id,
        }


@dataclass
class StoredAccount:
    """Account credential record built at the end of a successful login

    Ownership passes to the account storage collaborator once the login
    completes.
    """
    id: str
    name: str
    email: Optional[str]
    plan_type: Optional[str]
    auth_mode: AuthMode
    auth_data: ChatGPTAuthData
    created_at: datetime.datetime = field(default_factory=_utcnow)
    last_used_at: Optional[datetime.datetime] = None

    @classmethod
    def new_chatgpt(
        cls,
        name: str,
        email: Optional[str],
        plan_type: Optional[str],
        id_token: str,
        access_token: str,
        refresh_token: str,
        account_id: Optional[str],
    ) -> "StoredAccount":
        """Create a new account with ChatGPT OAuth authentication"""
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            plan_type=plan_type,
            auth_mode=AuthMode.CHATGPT,
            auth_data=ChatGPTAuthData(
                id_token=id_token,
                access_token=access_token,
                refresh_token=refresh_token,
                account_id=account_id,
            ),
        )

    @property
    def id_token(self) -> str:
        return self.auth_data.id_token

    @property
    def access_token(self) -> str:
        return self.auth_data.access_token

    @property
    def refresh_token(self) -> str:
        return self.auth_data.refresh_token

    @property
    def provider_account_id(self) -> Optional[str]:
        return self.auth_data.account_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for hand-off to storage"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "plan_type": self.plan_type,
            "auth_mode": self.auth_mode.value,
            "auth_data": self.auth_data.to_dict(),
            "created_at": _isoformat(self.created_at),
            "last_used_at": _isoformat(self.last_used_at),
        }


@dataclass(frozen=True)
class AccountInfo:
    """Account summary safe to display (no credentials)"""
    id: str
    name: str
    email: Optional[str]
    plan_type: Optional[str]
    auth_mode: AuthMode
    is_active: bool
    created_at: datetime.datetime
    last_used_at: Optional[datetime.datetime] = None

    @classmethod
    def from_stored(cls, account: StoredAccount, active_id: Optional[str]) -> "AccountInfo":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            plan_type=account.plan_type,
            auth_mode=account.auth_mode,
            is_active=active_id == account.id,
            created_at=account.created_at,
            last_used_at=account.last_used_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "plan_type": self.plan_type,
            "auth_mode": self.auth_mode.value,
            "is_active": self.is_active,
            "created_at": _isoformat(self.created_at),
            "last_used_at": _isoformat(self.last_used_at),
        }
