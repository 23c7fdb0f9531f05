from .exceptions import BizError, InvalidGeometryError, SinkError, UnsupportedGeometryError

__all__ = ["BizError", "InvalidGeometryError", "SinkError", "UnsupportedGeometryError"]
