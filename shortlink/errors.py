"""Domain error types shared across the service."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ErrorType",
    "SlugError",
    "new_request_error",
    "REQUEST_PARAM_ERROR",
    "AUTHORIZATION_ERROR",
    "EXTERNAL_ERROR",
    "ERR_UNAUTHORIZED",
    "LINK_INVALID_ORIGINAL_URL",
    "LINK_INVALID_VALID_TYPE",
    "LINK_END_TIME_BEFORE_START_TIME",
    "LINK_GROUP_EMPTY",
    "LINK_ALREADY_EXISTS",
    "LINK_NOT_EXISTS",
    "LINK_DISABLED",
    "LINK_EXPIRED",
    "LINK_FORBIDDEN",
    "LINK_RESERVED",
    "LINK_INVALID_STATUS",
    "LINK_TOO_MANY_ATTEMPTS",
    "LINK_DISALLOWED_DOMAIN",
    "LINK_GROUP_LINK_COUNT_EXCEED",
    "LOCK_ACQUIRE_FAILED",
    "LOCK_RELEASE_FAILED",
    "REDIS_ERROR",
    "REDIS_KEY_NOT_EXIST",
]


class ErrorType(str, Enum):
    """Category of a domain error; decides how it is reported over HTTP."""

    REQUEST_PARAM = "request-param"  # 400
    AUTHORIZATION = "authorization"  # 401
    RESOURCE_NOT_FOUND = "resource-not-found"  # 404
    EXTERNAL_ERROR = "external-error"  # 500
    SERVICE_ERROR = "service-error"  # 500/200


class SlugError(Exception):
    """An error with a category and a user-facing message.

    Two errors are equal when both category and message match, so a raised
    error can be compared with the predefined ones below.
    """

    def __init__(self, error_type: ErrorType, msg: str) -> None:
        super().__init__(msg)
        self.error_type = ErrorType(error_type)
        self.msg = msg

    def __str__(self) -> str:
        return self.msg

    def __repr__(self) -> str:
        return f"SlugError({self.error_type.value!r}, {self.msg!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SlugError):
            return NotImplemented
        return (self.error_type, self.msg) == (other.error_type, other.msg)

    def __hash__(self) -> int:
        return hash((self.error_type, self.msg))


def new_request_error(msg: str) -> SlugError:
    """Create a request-parameter error with the given message."""
    return SlugError(ErrorType.REQUEST_PARAM, msg)


REQUEST_PARAM_ERROR = SlugError(ErrorType.REQUEST_PARAM, "请求参数错误")
AUTHORIZATION_ERROR = SlugError(ErrorType.AUTHORIZATION, "鉴权失败")
EXTERNAL_ERROR = SlugError(ErrorType.EXTERNAL_ERROR, "系统异常")

ERR_UNAUTHORIZED = SlugError(ErrorType.AUTHORIZATION, "未授权")

LINK_INVALID_ORIGINAL_URL = SlugError(ErrorType.REQUEST_PARAM, "不合法的原始链接")
LINK_INVALID_VALID_TYPE = SlugError(ErrorType.REQUEST_PARAM, "不合法的有效期类型")
LINK_END_TIME_BEFORE_START_TIME = SlugError(ErrorType.REQUEST_PARAM, "结束时间早于开始时间")

LINK_GROUP_EMPTY = SlugError(ErrorType.RESOURCE_NOT_FOUND, "分组下没有短链接")
LINK_ALREADY_EXISTS = SlugError(ErrorType.SERVICE_ERROR, "短链接已存在")
LINK_NOT_EXISTS = SlugError(ErrorType.SERVICE_ERROR, "短链接不存在")
LINK_DISABLED = SlugError(ErrorType.SERVICE_ERROR, "短链接已停用")
LINK_EXPIRED = SlugError(ErrorType.SERVICE_ERROR, "短链接已过期")
LINK_FORBIDDEN = SlugError(ErrorType.SERVICE_ERROR, "短链接已禁用")
LINK_RESERVED = SlugError(ErrorType.SERVICE_ERROR, "短链接已保留")
LINK_INVALID_STATUS = SlugError(ErrorType.SERVICE_ERROR, "不合法的短链接状态")
LINK_TOO_MANY_ATTEMPTS = SlugError(ErrorType.SERVICE_ERROR, "多次尝试生成唯一短链接失败")
LINK_DISALLOWED_DOMAIN = SlugError(ErrorType.SERVICE_ERROR, "不支持跳转的域名")
LINK_GROUP_LINK_COUNT_EXCEED = SlugError(ErrorType.SERVICE_ERROR, "超过组内短链接数量限制")

LOCK_ACQUIRE_FAILED = SlugError(ErrorType.EXTERNAL_ERROR, "锁获取失败")
LOCK_RELEASE_FAILED = SlugError(ErrorType.EXTERNAL_ERROR, "锁释放失败")

REDIS_ERROR = SlugError(ErrorType.EXTERNAL_ERROR, "Redis异常")
REDIS_KEY_NOT_EXIST = SlugError(ErrorType.EXTERNAL_ERROR, "Redis key不存在")