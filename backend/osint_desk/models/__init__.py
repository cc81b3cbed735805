from osint_desk.models.api_config import ApiConfig
from osint_desk.models.case import Case
from osint_desk.models.entity import Entity
from osint_desk.models.relationship import EntityRelationship
from osint_desk.models.search_history import SearchHistory
from osint_desk.models.timeline import TimelineEvent

__all__ = ["ApiConfig", "Case", "Entity", "EntityRelationship", "SearchHistory", "TimelineEvent"]
