__all__ = ["core"]
