from .normalizer import clean_cell_text, is_artifact_row, normalize

__all__ = ["clean_cell_text", "is_artifact_row", "normalize"]
