"""
Image export and display for fern renders.

This module writes published surfaces to PNG, TIFF or JPEG files with the
render parameters embedded as metadata, and can show a render on screen.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

logger = logging.getLogger(__name__)

METADATA_KEY = "FernMetadata"
TIFF_METADATA_TAG = 42000


@dataclass
class RenderMetadata:
    """Metadata for fern renders."""

    # Fern parameters
    depth: float
    angle: float
    growth: float
    frond_count: int
    resolution: Tuple[int, int]  # width, height

    # Reproducibility
    seed: Optional[int] = None

    # Render statistics
    segment_count: int = 0
    ripple_count: int = 0
    render_time_seconds: float = 0.0

    # Generation info
    timestamp: str = ""
    software_version: str = "1.0.0"
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        self.resolution = tuple(self.resolution)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def check_format(self, filepath: Path) -> None:
        """Raise ValueError if the file suffix is not a supported format."""
        suffix = Path(filepath).suffix.lower()
        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   quality: int = 95) -> None:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: RGB image array (height, width, 3), uint8
            filepath: Output file path
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)
        """
        filepath = Path(filepath)
        self.check_format(filepath)

        image_array = self._prepare_image_array(image_array)
        pil_image = Image.fromarray(image_array)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        save_method = self.supported_formats[filepath.suffix.lower()]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")

    def _prepare_image_array(self, image_array: np.ndarray) -> np.ndarray:
        """Validate image array for export."""
        image_array = np.asarray(image_array)
        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype != np.uint8:
            image_array = np.clip(image_array, 0, 255).astype(np.uint8)

        return image_array

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata text chunks."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", f"Fern: depth {metadata.depth}, {metadata.frond_count} fronds")
            pnginfo.add_text("Software", f"FernGenerator v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as TIFF with metadata tags."""
        save_kwargs = {'format': 'TIFF', 'compression': 'tiff_lzw'}

        if metadata:
            tiffinfo = {
                270: f"Fern: depth {metadata.depth}, {metadata.frond_count} fronds",  # ImageDescription
                305: f"FernGenerator v{metadata.software_version}",  # Software
                TIFF_METADATA_TAG: metadata.to_json(),
            }
            save_kwargs['tiffinfo'] = tiffinfo

        pil_image.save(filepath, **save_kwargs)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG with a companion JSON metadata file."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)

        if metadata:
            json_path = filepath.with_suffix('.json')
            json_path.write_text(metadata.to_json())
            logger.info(f"Saved metadata: {json_path}")

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract fern metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None
        """
        filepath = Path(filepath)

        with Image.open(filepath) as img:
            text = getattr(img, 'text', None)
            if text and METADATA_KEY in text:
                return RenderMetadata.from_json(text[METADATA_KEY])

            tags = getattr(img, 'tag_v2', None)
            if tags is not None and TIFF_METADATA_TAG in tags:
                return RenderMetadata.from_json(tags[TIFF_METADATA_TAG])

        if filepath.suffix.lower() in ['.jpg', '.jpeg']:
            json_path = filepath.with_suffix('.json')
            if json_path.exists():
                return RenderMetadata.from_json(json_path.read_text())

        return None

    def get_image_info(self, filepath: Path) -> Dict[str, Any]:
        """
        Get information about an image file.

        Args:
            filepath: Path to image file

        Returns:
            Dictionary with image information
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Image file not found: {filepath}")

        with Image.open(filepath) as img:
            info = {
                'filepath': str(filepath),
                'size_bytes': filepath.stat().st_size,
                'format': img.format,
                'dimensions': img.size,
                'mode': img.mode,
            }

        metadata = self.extract_metadata_from_image(filepath)
        info['has_fern_metadata'] = metadata is not None
        info['fern_metadata'] = metadata.to_dict() if metadata else None
        return info


def show_image(image_array: np.ndarray, title: Optional[str] = None) -> None:
    """Display a rendered image in a matplotlib window."""
    import matplotlib.pyplot as plt

    height, width = image_array.shape[:2]
    fig, ax = plt.subplots(figsize=(width / 100, height / 100), dpi=100)
    ax.imshow(image_array)
    ax.set_axis_off()
    if title:
        ax.set_title(title)
    fig.tight_layout()
    plt.show()
