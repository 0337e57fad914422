"""
自定义异常模块

定义应用特定的异常类，用于统一的错误处理。
所有业务异常都继承自 AppError，在 main.py 中有统一的异常处理器。

注意：到访账本是尽力而为的读路径，单个键读取失败只会记录为警告，
只有存储整体不可达时才会抛出 store_unavailable()。
"""
from __future__ import annotations


class AppError(Exception):
    """
    应用自定义异常类

    包含：
    - code: 业务错误码（用于前端区分不同错误）
    - message: 错误消息
    - status_code: HTTP 状态码（400, 404, 503 等）

    使用示例：
        raise AppError(code=503001, message="Store unavailable", status_code=503)
    """

    def __init__(self, *, code: int, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


def store_unavailable(detail: str | None = None) -> AppError:
    """
    创建"存储不可达"异常（便捷函数）

    这是账本读取中唯一会向调用方传播的硬失败：
    存储整体不可达时，部分数据回退没有意义。
    """
    message = "Key-value store unavailable"
    if detail:
        message = f"{message}: {detail}"
    return AppError(code=503001, message=message, status_code=503)
