"""
Catalog Vision Imaging Utilities
Handles image decoding, upload validation and resizing.
"""
import io
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from fastapi import HTTPException, UploadFile
from PIL import Image

from catalog_vision.config import config
from catalog_vision.services.errors import DecodeFailure


def validate_file_upload(file: UploadFile, file_bytes: bytes) -> None:
    """
    Validate an uploaded image for size and format.
    
    Args:
        file: FastAPI UploadFile object
        file_bytes: Bytes already read from the upload
        
    Raises:
        HTTPException: 413 for oversized files, 415 for unsupported formats,
            400 for files whose magic bytes are not an image
    """
    if len(file_bytes) > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )
    
    if file.content_type and file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )
    
    if detect_image_format(file_bytes) is None:
        raise HTTPException(
            status_code=400,
            detail="Invalid image file. Magic bytes don't match supported formats."
        )


def detect_image_format(file_bytes: bytes) -> Optional[str]:
    """
    Detect image MIME type from magic bytes.
    
    Returns:
        MIME type string, or None when the bytes are not a supported image
    """
    if len(file_bytes) < 12:
        return None
    if file_bytes.startswith(b'\xff\xd8\xff'):
        return "image/jpeg"
    if file_bytes.startswith(b'\x89PNG\r\n\x1a\n'):
        return "image/png"
    if file_bytes[:4] == b'RIFF' and file_bytes[8:12] == b'WEBP':
        return "image/webp"
    return None


def decode_image_bytes(file_bytes: bytes) -> np.ndarray:
    """
    Decode raw image bytes into an RGB numpy array.
    
    Args:
        file_bytes: Encoded image (JPEG, PNG, WebP, ...)
        
    Returns:
        numpy array (H, W, 3) uint8 in RGB order
        
    Raises:
        DecodeFailure: If the bytes cannot be decoded
    """
    if not file_bytes:
        raise DecodeFailure("Empty image data")
    
    try:
        pil_image = Image.open(io.BytesIO(file_bytes))
        if pil_image.mode != 'RGB':
            pil_image = pil_image.convert('RGB')
        rgb_array = np.array(pil_image, dtype=np.uint8)
    except Exception as e:
        raise DecodeFailure(f"Failed to decode image: {e}") from e
    
    if rgb_array.ndim != 3 or rgb_array.shape[0] == 0 or rgb_array.shape[1] == 0:
        raise DecodeFailure(f"Decoded image has unusable shape {rgb_array.shape}")
    
    return rgb_array


def load_image_file(path: Union[str, Path]) -> np.ndarray:
    """Read and decode an image file from disk."""
    try:
        file_bytes = Path(path).read_bytes()
    except OSError as e:
        raise DecodeFailure(f"Failed to read {path}: {e}") from e
    return decode_image_bytes(file_bytes)


def resize_exact(img_rgb: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize image to exactly width x height, ignoring aspect ratio.
    """
    current_h, current_w = img_rgb.shape[:2]
    if (current_w, current_h) == (width, height):
        return img_rgb
    
    # INTER_AREA for downscaling, bilinear when enlarging
    if width * height < current_w * current_h:
        interpolation = cv2.INTER_AREA
    else:
        interpolation = cv2.INTER_LINEAR
    
    return cv2.resize(img_rgb, (width, height), interpolation=interpolation)


def scale_to_width(
    img_rgb: np.ndarray,
    width: int,
    enlarge: bool = True,
    max_height: Optional[int] = None
) -> np.ndarray:
    """
    Resize image to the given width, keeping the aspect ratio.
    
    Args:
        img_rgb: RGB image array
        width: Target width
        enlarge: When False, images already narrower than ``width`` are returned unchanged
        max_height: Upper bound on the output height; very tall images are squashed to it
    """
    current_h, current_w = img_rgb.shape[:2]
    if not enlarge and current_w <= width:
        return img_rgb
    
    height = max(1, int(round(current_h * width / current_w)))
    if max_height is not None:
        height = min(height, max_height)
    return resize_exact(img_rgb, width, height)


def read_pixel(img_rgb: np.ndarray, x: int, y: int) -> Optional[Tuple[float, float, float]]:
    """
    Read one RGB pixel.
    
    Returns:
        (r, g, b) floats, or None when the coordinate is outside the image
        or the raster carries fewer than three channels
    """
    if img_rgb.ndim != 3 or img_rgb.shape[2] < 3:
        return None
    height, width = img_rgb.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        return None
    r, g, b = img_rgb[y, x, :3]
    return float(r), float(g), float(b)
