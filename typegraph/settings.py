import os
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from typegraph.coercion import UnknownFieldPolicy


class ExecutionSettings(BaseModel):
    """Typed settings shared by every execution against a registry."""

    model_config = ConfigDict(frozen=True)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Root log level installed by setup_logging"
    )
    unknown_input_fields: UnknownFieldPolicy = Field(
        default="reject",
        description="Whether input objects reject or silently ignore keys their type does not declare",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Seconds before an execution is cancelled; None waits indefinitely"
    )
    partial_results: bool = Field(
        default=False, description="Keep completed root fields when an execution is cancelled or times out"
    )
    sync_resolvers_in_threads: bool = Field(
        default=False, description="Run plain (non-async) resolvers in a worker thread"
    )


def _env_bool(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(dotenv_path: str | None = None) -> ExecutionSettings:
    """
    Loads execution settings from TYPEGRAPH_* environment variables.

    A .env file (``dotenv_path``, or the nearest one above the working directory)
    is read first; variables already set in the environment win.
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))

    values: dict[str, object] = {}
    if os.getenv("TYPEGRAPH_LOG_LEVEL"):
        values["log_level"] = os.getenv("TYPEGRAPH_LOG_LEVEL", "INFO").upper()
    if os.getenv("TYPEGRAPH_UNKNOWN_INPUT_FIELDS"):
        values["unknown_input_fields"] = os.getenv("TYPEGRAPH_UNKNOWN_INPUT_FIELDS", "reject").lower()
    if os.getenv("TYPEGRAPH_TIMEOUT"):
        values["timeout"] = os.getenv("TYPEGRAPH_TIMEOUT")
    for key in ("partial_results", "sync_resolvers_in_threads"):
        flag = _env_bool(f"TYPEGRAPH_{key.upper()}")
        if flag is not None:
            values[key] = flag
    return ExecutionSettings(**values)


__all__ = ["ExecutionSettings", "load_settings"]
