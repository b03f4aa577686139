from .document import ResearchDocument
from .note import ResearchNote
from .research_column import ResearchColumn
from .research_item import ResearchItem

__all__ = ["ResearchItem", "ResearchColumn", "ResearchNote", "ResearchDocument"]
