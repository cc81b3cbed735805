import enum


class CaseStatus(str, enum.Enum):
    ACTIVE = "active"
    MONITORING = "monitoring"
    ARCHIVED = "archived"


class EntityType(str, enum.Enum):
    PERSON = "person"
    PHONE = "phone"
    EMAIL = "email"
    USERNAME = "username"
    WALLET = "wallet"
    VEHICLE = "vehicle"
    IMEI = "imei"
    DOMAIN = "domain"
    IP = "ip"
    ORGANIZATION = "organization"


class RiskLevel(str, enum.Enum):
    UNKNOWN = "unknown"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RelationshipType(str, enum.Enum):
    OWNS = "owns"
    ASSOCIATED = "associated"
    CONTACTED = "contacted"
    LINKED = "linked"
    WORKS_WITH = "works_with"
    RELATED_TO = "related_to"
    CONTROLS = "controls"
    FINANCES = "finances"


class SearchType(str, enum.Enum):
    NIK = "nik"
    NAME = "name"
    PHONE = "phone"
    EMAIL = "email"
    USERNAME = "username"
    IMEI = "imei"
    CRYPTO = "crypto"
    VEHICLE = "vehicle"
    BREACH = "breach"
    DOMAIN = "domain"
    IP = "ip"


class SearchStatus(str, enum.Enum):
    OK = "ok"
    PARTIAL = "partial"
    NO_ACTIVE_PROVIDER = "no_active_provider"
    ERROR = "error"


class TimelineEventType(str, enum.Enum):
    CASE_CREATED = "case_created"
    CASE_UPDATED = "case_updated"
    ENTITY_ADDED = "entity_added"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_REMOVED = "entity_removed"
    RELATIONSHIP_ADDED = "relationship_added"
    RELATIONSHIP_REMOVED = "relationship_removed"


def values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]
