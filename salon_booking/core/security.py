import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

logger = logging.getLogger(__name__)


# =========================
# PAPÉIS
# =========================

class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    RECEPTION = "reception"
    STYLIST = "stylist"
    CUSTOMER = "customer"


# quem pode cancelar dentro da janela de cancelamento
CANCELLATION_OVERRIDE_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER, Role.RECEPTION})

# quem mexe em horários e configurações do booking
SCHEDULE_ADMIN_ROLES: FrozenSet[Role] = frozenset({Role.OWNER, Role.ADMIN, Role.MANAGER})


@dataclass(frozen=True)
class Actor:
    id: Optional[str] = None
    roles: FrozenSet[Role] = frozenset({Role.CUSTOMER})

    @property
    def label(self) -> str:
        return self.id or "customer"


def can_override_cancellation_window(actor: Actor) -> bool:
    return bool(actor.roles & CANCELLATION_OVERRIDE_ROLES)


def can_manage_schedule(actor: Actor) -> bool:
    return bool(actor.roles & SCHEDULE_ADMIN_ROLES)


def parse_roles(values: Iterable[str]) -> FrozenSet[Role]:
    roles = set()
    for value in values:
        try:
            roles.add(Role(value))
        except ValueError:
            logger.warning(f"Ignoring unknown role in token: {value!r}")
    return frozenset(roles)


# =========================
# TOKEN JWT
# =========================

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    data: dict,
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=30)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def issue_staff_token(settings, subject: str, roles: Iterable[Role]) -> str:
    """Token de equipe com a validade de ACCESS_TOKEN_EXPIRE_MINUTES."""
    return create_access_token(
        {"sub": subject, "roles": [Role(role).value for role in roles]},
        settings.secret_key,
        algorithm=settings.algorithm,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )


def decode_actor(token: str, secret_key: str, algorithm: str = "HS256") -> Actor:
    payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("token without subject")

    roles = parse_roles(payload.get("roles") or [])
    return Actor(id=str(subject), roles=roles or frozenset({Role.CUSTOMER}))


# =========================
# ATOR DA REQUISIÇÃO
# - sem token: cliente anônimo (booking online)
# =========================

def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    if credentials is None:
        return Actor()

    settings = request.app.state.settings
    try:
        return decode_actor(credentials.credentials, settings.secret_key, settings.algorithm)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


# =========================
# SOMENTE GESTÃO (horários / configurações)
# =========================

def get_schedule_admin(
    actor: Actor = Depends(get_current_actor),
) -> Actor:
    if not can_manage_schedule(actor):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only owners, admins and managers can change the schedule",
        )
    return actor
