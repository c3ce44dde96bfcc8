from .house import COLUMNS, House

__all__ = ["COLUMNS", "House"]
