from .result import coerce_result, error_result, is_error, text_result

__all__ = ["coerce_result", "error_result", "is_error", "text_result"]
