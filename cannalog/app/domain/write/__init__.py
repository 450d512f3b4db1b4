from .view_model import EntryEditorViewModel, WriteUiState

__all__ = ["EntryEditorViewModel", "WriteUiState"]
