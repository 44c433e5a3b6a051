"""
Onboarding Type Definitions

Dataclasses for the step catalog, employee records, generated documents,
outbound auth headers and per-candidate attempt diagnostics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from utils import flatten_json

# Provider response bodies are truncated to this many characters in diagnostics
BODY_PREVIEW_LENGTH = 300


class Provider(Enum):
    """External REST providers."""
    DOCGEN = "docgen"
    ESIGN = "esign"


class AuthMode(Enum):
    BEARER = "bearer"
    BASIC = "basic"
    NONE = "none"


@dataclass(frozen=True)
class OnboardingStep:
    """
    A fixed catalog entry.

    Attributes:
        id: Display order
        key: Stable identifier (e.g., "handbook-ack")
        title: Display title
        description: One-line description
        demo: True for live (interactive) steps
        completed: True for steps shown as pre-completed
        template: Template filename for live steps
    """
    id: int
    key: str
    title: str
    description: str
    demo: bool = False
    completed: bool = False
    template: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.demo

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'key': self.key,
            'title': self.title,
            'description': self.description,
            'demo': self.demo,
            'completed': self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OnboardingStep':
        return cls(
            id=int(data['id']),
            key=data['key'],
            title=data['title'],
            description=data.get('description', ''),
            demo=bool(data.get('demo', False)),
            completed=bool(data.get('completed', False)),
            template=data.get('template'),
        )


@dataclass(frozen=True)
class Employee:
    """An employee record loaded from ``employee_data/<key>.json``."""
    key: str
    attributes: Dict[str, Any]

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get('employeeName')

    @property
    def email(self) -> Optional[str]:
        return self.attributes.get('employeeEmail')

    def document_values(self) -> Dict[str, str]:
        """Attributes flattened into dotted keys for template filling."""
        return flatten_json(self.attributes)


@dataclass(frozen=True)
class TemplateDocument:
    """A template resolved from the request, ready to send to the provider."""
    filename: str
    content: bytes


@dataclass
class GeneratedDocument:
    """
    The result of a successful generate operation.

    Only the file on disk is retained; this object lives for one request.
    """
    step_key: str
    employee_key: Optional[str]
    created_at: datetime
    file_path: str
    file_url: str

    @property
    def file_name(self) -> str:
        return self.file_url.rsplit('/', 1)[-1]


@dataclass(frozen=True)
class AuthContext:
    """
    Header set for one outbound call chain.

    Attributes:
        mode: Bearer or Basic
        authorization: Full Authorization header value
        client_id: Raw client id header, when it should be sent
        client_secret: Raw client secret header, when it should be sent
    """
    mode: AuthMode
    authorization: str
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    def headers(self, **extra: str) -> Dict[str, str]:
        headers = {'Authorization': self.authorization}
        if self.client_id:
            headers['client_id'] = self.client_id
        if self.client_secret:
            headers['client_secret'] = self.client_secret
        headers.update(extra)
        return headers


@dataclass
class Attempt:
    """One candidate endpoint outcome."""
    url: Optional[str] = None
    step: Optional[str] = None
    status: Optional[int] = None
    body: Optional[str] = None
    error: Optional[str] = None
    envelope_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is not None and 200 <= self.status < 300

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'step': self.step,
            'url': self.url,
            'status': self.status,
            'body': self.body,
            'error': self.error,
            'envelopeId': self.envelope_id,
        }
        return {k: v for k, v in data.items() if v is not None}

    def summary(self) -> str:
        text = f"{self.step or ''}@{self.url or ''} -> {self.status or 'ERR'}"
        if self.error:
            text += f" {self.error}"
        return text


@dataclass
class AttemptLog:
    """
    Ordered per-candidate outcomes for one operation.

    Collected instead of raising on each failure, then discarded
    once the request completes.
    """
    attempts: List[Attempt] = field(default_factory=list)

    def record_response(self, response, url: str, step: Optional[str] = None) -> Attempt:
        attempt = Attempt(
            url=url,
            step=step,
            status=response.status_code,
            body=(response.text or '')[:BODY_PREVIEW_LENGTH],
        )
        self.attempts.append(attempt)
        return attempt

    def record_error(self, error: Exception, url: Optional[str] = None, step: Optional[str] = None,
                     envelope_id: Optional[str] = None) -> Attempt:
        attempt = Attempt(url=url, step=step, error=str(error), envelope_id=envelope_id)
        self.attempts.append(attempt)
        return attempt

    def to_list(self) -> List[Dict[str, Any]]:
        return [a.to_dict() for a in self.attempts]

    def summary(self) -> str:
        return ' | '.join(a.summary() for a in self.attempts)

    def __len__(self) -> int:
        return len(self.attempts)

    def __iter__(self):
        return iter(self.attempts)


@dataclass(frozen=True)
class Signer:
    name: str
    email: str


@dataclass
class SignatureRequest:
    """Everything a send strategy needs to create and send an envelope."""
    content: bytes
    filename: str
    signer: Signer
    subject: str
    message: str
    public_file_url: Optional[str] = None

    @property
    def signer_first_last(self):
        """Split the signer name into (first, last), last word being the last name."""
        parts = self.signer.name.strip().split()
        if not parts:
            return 'Signer', ''
        if len(parts) == 1:
            return parts[0], ''
        return ' '.join(parts[:-1]), parts[-1]
