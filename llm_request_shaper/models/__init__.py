from .model_info import ModelInfo

__all__ = ["ModelInfo"]
