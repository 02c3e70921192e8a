"""
自定义异常类
"""

from fastapi import HTTPException, status


class MeetAIException(Exception):
    """MeetAI应用基础异常"""

    def __init__(self, message: str, code: str = "GENERAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class AuthenticationException(MeetAIException):
    """身份校验失败异常（签名错误等）"""

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message, "AUTHENTICATION_FAILED")


class ValidationException(MeetAIException):
    """数据验证异常"""

    def __init__(self, message: str = "数据验证失败"):
        super().__init__(message, "VALIDATION_ERROR")


class ResourceNotFoundException(MeetAIException):
    """资源未找到异常"""

    def __init__(self, resource: str = "Resource", message: str = None):
        super().__init__(message or f"{resource} not found", "RESOURCE_NOT_FOUND")


class UpstreamServiceException(MeetAIException):
    """外部服务（通话平台、转录存储）调用失败"""

    def __init__(self, message: str = "Upstream request failed", status_code: int = None):
        self.status_code = status_code
        super().__init__(message, "UPSTREAM_ERROR")


class AIServiceException(MeetAIException):
    """AI服务异常"""

    def __init__(self, message: str = "AI服务调用失败"):
        super().__init__(message, "AI_SERVICE_ERROR")


class DatabaseException(MeetAIException):
    """数据库异常"""

    def __init__(self, message: str = "数据库操作失败"):
        super().__init__(message, "DATABASE_ERROR")


class ConfigurationException(MeetAIException):
    """配置错误异常"""

    def __init__(self, message: str = "配置错误"):
        super().__init__(message, "CONFIGURATION_ERROR")


# HTTP异常映射
def meetai_exception_to_http_exception(exc: MeetAIException) -> HTTPException:
    """将MeetAI异常转换为HTTP异常"""

    status_code_mapping = {
        "AUTHENTICATION_FAILED": status.HTTP_401_UNAUTHORIZED,
        "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
        "RESOURCE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
        "UPSTREAM_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "AI_SERVICE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
        "DATABASE_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "CONFIGURATION_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    status_code = status_code_mapping.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail={
            "error": True,
            "code": exc.code,
            "message": exc.message,
            "type": type(exc).__name__
        }
    )
