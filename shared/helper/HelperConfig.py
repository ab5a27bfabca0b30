"""Central configuration helper for the record integrity bridge."""

import logging
import os

from shared.models.rules import IntegrityRules


class HelperConfig:
    """Reads all settings from environment variables and hands out the shared logger."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name (case-insensitive).
            default (str | None): Fallback value if the variable is not set.

        Returns:
            str: The resolved value, stripped of surrounding whitespace.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        key = key.upper()
        val = os.getenv(key) or None  # empty string → None
        if val is None and default is None:
            raise ValueError(f"Environment variable '{key}' is not set.")
        return val.strip() if val is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable.

        Args:
            key (str): Environment variable name (case-insensitive).
            default (float | int | None): Fallback value if the variable is not set.

        Returns:
            float | int: int when the raw value has no decimal point, float otherwise.

        Raises:
            ValueError: If the variable is not set and no default is provided.
            ValueError: If the value cannot be parsed as a number.
        """
        key = key.upper()
        raw = os.getenv(key) or None
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        try:
            return int(raw) if "." not in raw else float(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable ("true", "1" and "yes" are truthy).

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        key = key.upper()
        raw = os.getenv(key) or None
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_integrity_rules(self) -> IntegrityRules:
        """Load the constraint tables from the file named by INTEGRITY_RULES_FILE.

        An unset variable yields empty tables, i.e. no type or value constraints.

        Returns:
            IntegrityRules: The constraint tables to inject into the RecordService.

        Raises:
            FileNotFoundError: If the configured file does not exist.
            pydantic.ValidationError: If the file content is malformed.
        """
        path = self.get_string_val("INTEGRITY_RULES_FILE", default="")
        if not path:
            self._logger.info("INTEGRITY_RULES_FILE not set, running without type/value constraints.")
            return IntegrityRules()
        rules = IntegrityRules.from_file(path)
        self._logger.info(
            "Loaded integrity rules from %s (%d typed collection(s), %d enumerated collection(s)).",
            path, len(rules.types), len(rules.values),
        )
        return rules

    def get_logger(self) -> logging.Logger:
        """Return the application logger.

        Returns:
            logging.Logger: The configured logger instance.
        """
        return self._logger
