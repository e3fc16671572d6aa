import pandas as pd

TRUE_WORDS = {"1", "true", "t", "yes", "y", "on"}
FALSE_WORDS = {"0", "false", "f", "no", "n", "off"}


def coerce_cell_value(dtype, text):
    """Convert widget text to a value the column's dtype can hold.

    Object and string columns keep the text untouched. Empty text in a typed
    column becomes None. Raises ValueError when the text cannot be parsed.
    """
    if text is None:
        return None
    if not isinstance(text, str):
        return text
    if dtype is None or pd.api.types.is_object_dtype(dtype):
        return text
    if pd.api.types.is_string_dtype(dtype):
        return text

    stripped = text.strip()
    if pd.api.types.is_bool_dtype(dtype):
        if stripped == "":
            return None
        lowered = stripped.lower()
        if lowered in TRUE_WORDS:
            return True
        if lowered in FALSE_WORDS:
            return False
        raise ValueError(f"Cannot coerce '{text}' to boolean")

    if pd.api.types.is_integer_dtype(dtype):
        if stripped == "":
            return None
        return int(stripped)

    if pd.api.types.is_float_dtype(dtype):
        if stripped == "":
            return None
        return float(stripped)

    if pd.api.types.is_datetime64_any_dtype(dtype):
        if stripped == "":
            return None
        return pd.to_datetime(stripped, errors="raise")

    return text


def display_text(value) -> str:
    """Text shown in a freshly opened widget for a stored cell value."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)
