from .frame import ViewFrame

__all__ = ["ViewFrame"]
