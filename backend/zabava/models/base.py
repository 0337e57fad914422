"""
基础模型模块

定义所有模型共用的基础类。
对外输出的字段统一使用 camelCase（与已有仪表盘约定一致），
Python 代码内部使用 snake_case。
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case 属性 + camelCase 序列化别名的模型基类"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


__all__ = ["CamelModel"]
