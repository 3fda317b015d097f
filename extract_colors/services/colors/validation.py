"""
Caller-supplied color acceptance.

The validator is a plain predicate over ColorAttributes; representatives it
rejects are dropped without reordering the rest.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from loguru import logger

from extract_colors.services.colors.extraction import Representative
from extract_colors.services.colors.utils import rgb_to_hex, rgb_to_hsl


@dataclass(frozen=True)
class ColorAttributes:
    """Attributes of a candidate color exposed to a color validator."""
    r: int
    g: int
    b: int
    hue: float
    saturation: float
    lightness: float
    count: int
    
    @property
    def hex(self) -> str:
        return rgb_to_hex(self.r, self.g, self.b)


ColorValidator = Callable[[ColorAttributes], bool]


def color_attributes(rep: Representative) -> ColorAttributes:
    """Describe a representative for a validator."""
    hue, saturation, lightness = rgb_to_hsl(rep.r, rep.g, rep.b)
    return ColorAttributes(rep.r, rep.g, rep.b, hue, saturation, lightness, rep.count)


def filter_representatives(representatives: Sequence[Representative],
                           color_validator: Optional[ColorValidator] = None) -> List[Representative]:
    """Keep the representatives accepted by color_validator (all of them when it is None)."""
    if color_validator is None:
        return list(representatives)
    
    kept = [rep for rep in representatives if color_validator(color_attributes(rep))]
    
    dropped = len(representatives) - len(kept)
    if dropped:
        logger.debug(f"Color validator rejected {dropped}/{len(representatives)} colors")
    return kept
