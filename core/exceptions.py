from typing import Any, Dict, Optional

class BizError(Exception):
    """
    通用业务异常
    """
    def __init__(
        self,
        message: str,
        code: int = 400,
        payload: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.payload = payload or {}
        super().__init__(self.message)

class InvalidGeometryError(BizError):
    """
    输入几何无法解析：嵌套层级歧义、环点数不足、坐标非数值等
    """
    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code=400, payload=payload)

class UnsupportedGeometryError(BizError):
    """
    可识别但不支持的几何类型 (如 GeometryCollection)
    """
    def __init__(self, geometry_type: str):
        super().__init__(
            message=f"Unsupported geometry type: {geometry_type}",
            code=422,
            payload={"geometry_type": str(geometry_type)}
        )

class SinkError(BizError):
    """
    外部写入端拒绝了某一行结果
    """
    def __init__(self, message: str, row_index: int, original_error: str = ""):
        super().__init__(
            message=message,
            code=502,
            payload={"row_index": row_index, "original_error": str(original_error)}
        )
        self.row_index = row_index
