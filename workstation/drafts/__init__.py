from .autosave import DraftAutoSave, draft_key
from .factory import get_draft_store

__all__ = ['DraftAutoSave', 'draft_key', 'get_draft_store']
