"""
Extract Colors Configuration
Manages environment variables and defaults for palette extraction.
"""
import os


class Config:
    """Configuration class for palette extraction."""
    
    # Pixel budget used when downsizing decoded images
    DEFAULT_PIXELS: int = int(os.environ.get("EXTRACT_COLORS_PIXELS", "64000"))
    
    # Quantization defaults
    DEFAULT_DISTANCE: float = float(os.environ.get("EXTRACT_COLORS_DISTANCE", "0.22"))
    DEFAULT_SPLIT_POWER: int = int(os.environ.get("EXTRACT_COLORS_SPLIT_POWER", "10"))
    
    # Pixels with alpha <= MIN_ALPHA are treated as transparent
    DEFAULT_MIN_ALPHA: int = int(os.environ.get("EXTRACT_COLORS_MIN_ALPHA", "0"))
    
    # Logging and metrics
    LOG_LEVEL: str = os.environ.get("EXTRACT_COLORS_LOG_LEVEL", "INFO")
    METRICS_ENABLED: bool = bool(int(os.environ.get("EXTRACT_COLORS_METRICS_ENABLED", "1")))
    
    # Buffer layout
    PIXEL_STRIDE: int = 4
    
    # Limits
    MIN_SPLIT_POWER: int = 2
    MAX_SPLIT_POWER: int = 16
    
    @classmethod
    def validate_split_power(cls, split_power: int) -> bool:
        """Validate split_power parameter."""
        return cls.MIN_SPLIT_POWER <= split_power <= cls.MAX_SPLIT_POWER
    
    @classmethod
    def validate_distance(cls, distance: float) -> bool:
        """Validate merge distance threshold."""
        return 0.0 <= distance <= 1.0
    
    @classmethod
    def validate_pixels(cls, pixels: int) -> bool:
        """Validate pixel budget."""
        return pixels > 0
    
    @classmethod
    def validate_min_alpha(cls, min_alpha: int) -> bool:
        """Validate transparency cutoff."""
        return 0 <= min_alpha <= 255


# Global config instance
config = Config()
