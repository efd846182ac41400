"""Agent runtime configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ellyn.meta import RUNTIME_CONF_FILE

__all__ = ["Configuration", "load_config"]

_logger = logging.getLogger(__name__)

_KEYS = {"noargs": "no_args", "nodemo": "no_demo", "samplingrate": "sampling_rate"}


@dataclass
class Configuration:
    """How the agent collects data.

    ``sampling_rate`` is the share of traffic collected, from 0 to 1.
    """

    no_args: bool = False
    no_demo: bool = False
    sampling_rate: float = 1.0

    def to_json(self) -> str:
        return json.dumps(
            {
                "NoArgs": self.no_args,
                "NoDemo": self.no_demo,
                "SamplingRate": self.sampling_rate,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Configuration":
        """Decode JSON; keys match case-insensitively and absent fields are zero."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("configuration must be a JSON object")
        conf = cls(no_args=False, no_demo=False, sampling_rate=0.0)
        for key, value in data.items():
            attr = _KEYS.get(key.lower())
            if attr is None:
                continue
            if attr == "sampling_rate":
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"{key} must be a number")
                value = float(value)
            elif not isinstance(value, bool):
                raise ValueError(f"{key} must be a boolean")
            setattr(conf, attr, value)
        return conf


def load_config(meta_dir: Union[str, Path]) -> Configuration:
    """Read ``config.json`` from ``meta_dir``.

    A missing, empty or invalid file gives an all-zero configuration, so
    nothing is sampled.
    """
    zero = Configuration(no_args=False, no_demo=False, sampling_rate=0.0)
    try:
        content = (Path(meta_dir) / RUNTIME_CONF_FILE).read_bytes()
    except OSError:
        return zero
    if not content:
        return zero
    try:
        conf = Configuration.from_json(content)
    except ValueError as err:
        _logger.error("config init failed. err %s", err)
        return zero
    _logger.info("init conf:%s", conf.to_json())
    return conf