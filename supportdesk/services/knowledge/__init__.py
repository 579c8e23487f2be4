"""Knowledge service - tenant knowledge base with soft delete."""

from supportdesk.services.knowledge.service import KnowledgeService

__all__ = ["KnowledgeService"]
