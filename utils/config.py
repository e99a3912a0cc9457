# chartir/utils/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

from dotenv import load_dotenv

load_dotenv()

CoercionPolicy = Literal["abort", "skip_mark"]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class CompileOptions:
    """
    Knobs for a single compilation.

      - fail_fast: stop validating after the first failing check category
      - on_coercion_error: "abort" the whole chart, or "skip_mark" and keep going
      - max_workers: >1 compiles marks on a thread pool
    """

    fail_fast: bool = False
    on_coercion_error: CoercionPolicy = "abort"
    max_workers: int = 1

    def __post_init__(self):
        if self.on_coercion_error not in ("abort", "skip_mark"):
            raise ValueError(
                f"on_coercion_error must be 'abort' or 'skip_mark', got {self.on_coercion_error!r}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(
        cls,
        *,
        fail_fast_env: str = "CHARTIR_FAIL_FAST",
        coercion_env: str = "CHARTIR_ON_COERCION_ERROR",
        workers_env: str = "CHARTIR_MAX_WORKERS",
    ) -> "CompileOptions":
        """
        Read options from the environment (a .env file is honored).
        Unset variables keep their defaults.
        """
        fail_fast = _env_bool(fail_fast_env, default=cls.fail_fast)

        on_coercion_error = os.getenv(coercion_env) or cls.on_coercion_error
        on_coercion_error = on_coercion_error.strip().lower()
        if on_coercion_error not in ("abort", "skip_mark"):
            raise ValueError(
                f"Invalid env var {coercion_env}={on_coercion_error!r} "
                "(expected 'abort' or 'skip_mark')"
            )

        raw_workers = os.getenv(workers_env)
        max_workers = cls.max_workers
        if raw_workers:
            try:
                max_workers = int(raw_workers)
            except ValueError:
                raise ValueError(
                    f"Invalid env var {workers_env}={raw_workers!r} (expected an integer)"
                ) from None
            if max_workers < 1:
                raise ValueError(f"Invalid env var {workers_env}={raw_workers!r} (must be >= 1)")

        return cls(
            fail_fast=fail_fast,
            on_coercion_error=on_coercion_error,
            max_workers=max_workers,
        )


def _env_bool(name: str, *, default: bool) -> bool:
    raw: Optional[str] = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"Invalid env var {name}={raw!r} (expected a boolean)")
