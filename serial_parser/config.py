"""
User preferences, read from the environment.

The run scripts call `load_dotenv()` first, so a `.env` file next to them
works as well as exported variables:

    SERIAL_PARSER_HIDE_LOCKED=true
    SERIAL_PARSER_LOG_LEVEL=DEBUG
    SERIAL_PARSER_GRAMMAR_DIR=./grammars
    SERIAL_PARSER_USER_AGENT=...
    SERIAL_PARSER_TIMEOUT=20
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import SerialParserError
from .schemas import ExtractionPolicy

ENV_PREFIX = "SERIAL_PARSER_"


class Preferences(BaseModel):
    hide_locked: bool = False
    log_level: str = "INFO"
    grammar_dir: Optional[str] = None
    user_agent: Optional[str] = None
    timeout: float = Field(default=15.0, gt=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Preferences":
        """
        Build preferences from SERIAL_PARSER_* variables; unset ones keep defaults.

        Raises:
            SerialParserError: a variable is set to an unusable value
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip():
                values[name] = raw.strip()
        try:
            return cls(**values)
        except ValidationError as e:
            raise SerialParserError("Invalid SERIAL_PARSER_* setting", {"errors": e.errors()}) from e

    def policy(self) -> ExtractionPolicy:
        return ExtractionPolicy(hide_locked=self.hide_locked)
