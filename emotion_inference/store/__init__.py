"""Model lifecycle management."""

from .model_handle import DenseLayer, ModelHandle, ModelState
from .model_loader import ModelLoader
from .model_store import ModelStore

__all__ = [
    'DenseLayer',
    'ModelHandle',
    'ModelState',
    'ModelLoader',
    'ModelStore',
]
