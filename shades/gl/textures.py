"""Texture decoding and upload.

Images are decoded with Pillow and uploaded as-is: the first row of the
file is the first row of the texture (``v = 0``). Only RGB and RGBA data
is accepted; palette images and CMYK/YCbCr JPEGs are converted first,
greyscale images are rejected. Sampling is fixed to repeat wrapping and
nearest-neighbour filtering without mipmaps, which keeps previews pixel
exact.
"""

import logging

import OpenGL.GL as gl
from PIL import Image, UnidentifiedImageError

# Module logger
logger = logging.getLogger(__name__)

# Pillow mode -> channel count
_SUPPORTED_MODES = {"RGB": 3, "RGBA": 4}

# Modes that only differ from RGB/RGBA by storage; stb-style loaders expand
# them to the matching channel count.
_PALETTE_MODES = ("P", "PA")

# Colour models JPEG decoders hand back as RGB.
_RGB_MODES = ("CMYK", "YCbCr")


class TextureError(RuntimeError):
    """Image could not be decoded or has an unsupported channel layout."""


def _pixel_format(channels):
    return gl.GL_RGBA if channels == 4 else gl.GL_RGB


def create_texture(width, height, data, channels=4):
    """Create a 2D texture with the preview's fixed sampling state.

    Parameters
    ----------
    width, height : int
        Texture size in pixels, both strictly positive.
    data : bytes
        Tightly packed 8-bit pixel rows, top row first.
    channels : int, optional
        3 for RGB, 4 for RGBA. Default is 4.

    Returns
    -------
    int
        OpenGL texture handle. The texture is left bound to
        ``GL_TEXTURE_2D`` on the active unit.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Texture size must be positive, got {width}x{height}.")
    if channels not in (3, 4):
        raise ValueError(f"Unsupported channel count {channels}.")

    tex = int(gl.glGenTextures(1))
    gl.glBindTexture(gl.GL_TEXTURE_2D, tex)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_NEAREST)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_NEAREST)

    fmt = _pixel_format(channels)
    # RGB rows are not 4-byte aligned for most widths.
    gl.glPixelStorei(gl.GL_UNPACK_ALIGNMENT, 1)
    gl.glTexImage2D(gl.GL_TEXTURE_2D, 0, fmt, width, height, 0, fmt, gl.GL_UNSIGNED_BYTE, data)
    return tex


def delete_texture(tex):
    """Delete a texture object; handle 0 is ignored."""
    if tex:
        gl.glDeleteTextures([tex])


def decode_image(path):
    """Decode an image file into tightly packed 8-bit pixels.

    Parameters
    ----------
    path : str or os.PathLike
        Image file.

    Returns
    -------
    pixels : bytes
        Pixel rows, top row first.
    width, height : int
        Image size in pixels.
    channels : int
        3 or 4.

    Raises
    ------
    TextureError
        If the file cannot be read or decoded, or is not RGB/RGBA.
    """
    try:
        with Image.open(path) as img:
            if img.mode in _PALETTE_MODES:
                has_alpha = img.mode == "PA" or "transparency" in img.info
                img = img.convert("RGBA" if has_alpha else "RGB")
            elif img.mode in _RGB_MODES:
                img = img.convert("RGB")
            if img.mode not in _SUPPORTED_MODES:
                raise TextureError(
                    f"image `{path}` does not have the right format "
                    f"({img.mode}, {len(img.getbands())} channels; expected RGB or RGBA)"
                )
            channels = _SUPPORTED_MODES[img.mode]
            width, height = img.size
            pixels = img.tobytes()
    except (
        OSError,
        UnidentifiedImageError,
        Image.DecompressionBombError,
        ValueError,
        SyntaxError,
    ) as exc:
        # Oversized images and some corrupt payloads are not OSErrors.
        raise TextureError(f"unable to load image `{path}`: {exc}") from exc
    return pixels, width, height, channels


def load_texture(path):
    """Decode an image file and upload it to a new texture.

    Parameters
    ----------
    path : str or os.PathLike
        Image file.

    Returns
    -------
    tex : int
        OpenGL texture handle.
    width, height : int
        Image size in pixels.
    channels : int
        3 or 4.

    Raises
    ------
    TextureError
        If decoding fails or the image is not RGB/RGBA. No GL object is
        created in that case.
    """
    pixels, width, height, channels = decode_image(path)
    tex = create_texture(width, height, pixels, channels)
    del pixels
    gl.glBindTexture(gl.GL_TEXTURE_2D, 0)

    logger.info("loaded texture `%s` (%dx%d, %d channels)", path, width, height, channels)
    return tex, width, height, channels
