"""
Extract Colors Schemas
Pydantic models for extraction options, input image data and output colors.
"""
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from extract_colors.config import config
from extract_colors.errors import InvalidOptionError


class ExtractorOptions(BaseModel):
    """Tuning knobs for a single extraction call."""
    model_config = ConfigDict(frozen=True, extra="forbid")
    
    pixels: int = Field(
        default_factory=lambda: config.DEFAULT_PIXELS,
        gt=0,
        description="Pixel budget the decoded image is downsized to before sampling"
    )
    distance: float = Field(
        default_factory=lambda: config.DEFAULT_DISTANCE,
        ge=0.0,
        le=1.0,
        description="Normalized RGB distance under which colors merge (1 is white to black)"
    )
    split_power: int = Field(
        default_factory=lambda: config.DEFAULT_SPLIT_POWER,
        ge=config.MIN_SPLIT_POWER,
        le=config.MAX_SPLIT_POWER,
        description="Median-cut depth, yields up to 2**split_power initial clusters"
    )
    min_alpha: int = Field(
        default_factory=lambda: config.DEFAULT_MIN_ALPHA,
        ge=0,
        le=255,
        description="Pixels with alpha at or below this value are ignored"
    )
    color_validator: Optional[Callable[..., bool]] = Field(
        None,
        description="Predicate over ColorAttributes; colors it rejects are dropped"
    )
    
    @classmethod
    def build(cls,
              options: Union["ExtractorOptions", Mapping[str, Any], None] = None,
              **overrides: Any) -> "ExtractorOptions":
        """
        Resolve options from an instance, a mapping and/or keyword overrides.
        
        Raises:
            InvalidOptionError: If any value is out of range or unknown
        """
        if isinstance(options, cls) and not overrides:
            return options
        
        data = {}
        if isinstance(options, cls):
            data = {name: getattr(options, name) for name in cls.model_fields}
        elif options is not None:
            data = dict(options)
        data.update(overrides)
        
        try:
            return cls(**data)
        except ValidationError as e:
            raise InvalidOptionError(f"Invalid extraction options: {e}") from e


class FinalColor(BaseModel):
    """A palette entry with its share of the sampled pixels."""
    model_config = ConfigDict(frozen=True)
    
    hex: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex color code in format #RRGGBB"
    )
    red: int = Field(..., ge=0, le=255)
    green: int = Field(..., ge=0, le=255)
    blue: int = Field(..., ge=0, le=255)
    hue: float = Field(..., ge=0.0, lt=360.0, description="Hue in degrees")
    saturation: float = Field(..., ge=0.0, le=1.0)
    lightness: float = Field(..., ge=0.0, le=1.0)
    area: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Fraction of sampled pixels represented by this color"
    )


class ImageData(BaseModel):
    """Decoded RGBA pixels, 4 bytes per pixel in row-major order."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    data: Any = Field(..., description="Flat R,G,B,A byte sequence of length 4*width*height")
