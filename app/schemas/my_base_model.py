from typing import Any

from pydantic import BaseModel

from app.core.logger import get_logger

logger = get_logger(__name__)


class CustomBaseModel(BaseModel):
    """Custom base model for response schemas.
    - pre-process the data before init
    - set the default value if the value is invalid
    """

    def __init__(self, **data: Any) -> None:
        for attr, value in data.items():
            field_info = self.__class__.model_fields.get(attr)
            if field_info is None:
                continue
            attr_type = field_info.annotation

            # process simple type
            if attr_type in (int, float, str, bool) and value is not None:
                try:  #  try to convert the value to the type of the attribute
                    data[attr] = attr_type(value)
                except Exception:
                    logger.debug("Invalid value for key %s, using default", attr)
                    data[attr] = field_info.default
            elif attr_type in (int, float, str, bool):
                data[attr] = field_info.default
        super().__init__(**data)


class Message(CustomBaseModel):
    error: str = ""
