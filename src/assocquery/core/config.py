"""Configuration dataclasses for assocquery.

ServiceConfig holds the protocol constants and the tunables that decide
which genotype store resolution serves a query.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from loguru import logger

# 2,147,483,647 is greater than the length of the longest chromosome
MAX_POSITION = 2**31 - 1
# Largest accepted request limit (32-bit signed, as on the wire)
MAX_LIMIT = 2**31 - 1


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for request handling.

    Attributes:
        md_version: The one supported dataset-version tag.
        api_version: The one supported protocol version.
        default_phenotype: Response phenotype used when the request names none.
        default_chrom: Chromosome queried when the request has no chrom filter.
        max_width_fine: Widest query span (inclusive) served by the fine store.
        max_width_medium: Widest query span (inclusive) served by the medium store.
        hard_limit: Result limit used when the request omits ``limit``.
        default_min_mac: Minimum MAC applied when no ``mac`` filter is given.
    """

    md_version: str = "mdv1"
    api_version: int = 1
    default_phenotype: str = "T2D"
    default_chrom: str = "1"
    max_width_fine: int = 600_000
    max_width_medium: int = 10_000_000
    hard_limit: int = 100_000
    default_min_mac: int = 0

    @classmethod
    def from_env(cls, **overrides) -> ServiceConfig:
        """Build a config, reading integer overrides from the environment.

        Reads ASSOCQUERY_HARD_LIMIT and ASSOCQUERY_DEFAULT_MIN_MAC. Invalid
        values are logged and ignored. Keyword arguments win over both.
        """
        config = cls()
        env_fields = {
            "hard_limit": "ASSOCQUERY_HARD_LIMIT",
            "default_min_mac": "ASSOCQUERY_DEFAULT_MIN_MAC",
        }
        for field_name, env_name in env_fields.items():
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            try:
                value = int(raw)
            except ValueError:
                logger.warning(
                    f"{env_name}={raw!r} is not a valid integer, "
                    f"keeping default {getattr(config, field_name)}"
                )
                continue
            if value < 0:
                logger.warning(f"{env_name}={value} is negative, ignoring")
                continue
            config = replace(config, **{field_name: value})
            logger.debug(f"{field_name} from {env_name}: {value}")
        if overrides:
            config = replace(config, **overrides)
        return config
