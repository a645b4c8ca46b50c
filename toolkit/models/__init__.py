"""
This package contains the model base and model resolution helpers.
"""

from toolkit.models.base import Base, model_identifier, resolve_model

__all__ = ['Base', 'model_identifier', 'resolve_model']
