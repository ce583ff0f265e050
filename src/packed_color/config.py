import logging
import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PackerSettings:
    color_space: str
    pre_dither: str
    post_dither: str
    output_dir: Optional[str]
    log_level: str

    @classmethod
    def from_env(cls) -> "PackerSettings":
        return cls(
            color_space=os.getenv("PACKED_COLOR_SPACE", "ycbcr").lower(),
            pre_dither=os.getenv("PACKED_PRE_DITHER", "none").lower(),
            post_dither=os.getenv("PACKED_POST_DITHER", "floyd_steinberg").lower(),
            output_dir=os.getenv("PACKED_OUTPUT_DIR") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


SETTINGS = PackerSettings.from_env()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    logging.basicConfig(
        level=level or SETTINGS.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return logging.getLogger("packed_color")
