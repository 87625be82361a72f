"""
app/transformers package marker.
"""

from app.transformers.row_transformer import RowTransformer

__all__ = ["RowTransformer"]
