from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    Общая конфигурация моделей: в JSON поля в camelCase (userId, createdAt),
    в Python - snake_case; принимаются оба варианта.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
