from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single environment setting a client needs before it can boot.

    Attributes:
        env_key (str): Key suffix of the variable. The client prefixes it with "<TYPE>_<ENGINE>_".
        val_type (str): How the raw value is read. One of "string", "number" and "bool".
        default (str | int | float | bool | None): Value used when the variable is not set. None marks the setting as required.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | None = None
