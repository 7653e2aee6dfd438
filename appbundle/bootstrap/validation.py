from __future__ import annotations

from appbundle.config import Config


def validate_startup_config(config: Config) -> None:
    if config.MAX_REQUEST_BODY_BYTES <= 0:
        raise RuntimeError("MAX_REQUEST_BODY_BYTES must be greater than 0.")
    if config.PORT <= 0:
        raise RuntimeError("PORT must be greater than 0.")
    if config.strict_security_mode and "*" in config.cors_allow_list:
        raise RuntimeError("Strict security mode requires explicit CORS_ALLOW (wildcard is not allowed).")
