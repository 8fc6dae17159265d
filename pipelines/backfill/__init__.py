from .full_rebuild import BatchResult, recalculate_all, recalculate_entities

__all__ = ["BatchResult", "recalculate_all", "recalculate_entities"]
