from .view_model import EntryListViewModel

__all__ = ["EntryListViewModel"]
