"""
Pixel compositing for the Face Photobooth: masked face crops, mirrored
frame draws and overlay painting. All buffers are HxWx4 uint8 RGBA.
"""
import cv2
import numpy as np


def alpha_over(dst, src, x=0, y=0):
    """
    Paint ``src`` over ``dst`` (Porter-Duff source-over), in place

    Parameters:
    - dst: RGBA canvas, modified in place
    - src: RGBA image to paint
    - x, y: Top-left position of ``src`` on the canvas, may be negative

    Returns:
    - dst
    """
    dst_h, dst_w = dst.shape[:2]
    src_h, src_w = src.shape[:2]

    # Clip the paste rectangle to the canvas
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + src_w, dst_w), min(y + src_h, dst_h)
    if x0 >= x1 or y0 >= y1:
        return dst

    top = dst[y0:y1, x0:x1].astype(np.float32)
    paint = src[y0 - y:y1 - y, x0 - x:x1 - x].astype(np.float32)

    src_a = paint[..., 3:4] / 255.0
    dst_a = top[..., 3:4] / 255.0
    out_a = src_a + dst_a * (1.0 - src_a)

    weighted = paint[..., :3] * src_a + top[..., :3] * dst_a * (1.0 - src_a)
    out_rgb = np.divide(weighted, out_a, out=np.zeros_like(weighted), where=out_a > 0)

    region = dst[y0:y1, x0:x1]
    region[..., :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    region[..., 3] = np.clip(np.rint(out_a[..., 0] * 255.0), 0, 255).astype(np.uint8)
    return dst


def fill_background(canvas, color):
    """Paint a solid RGBA color beneath the existing pixels, in place."""
    background = np.empty_like(canvas)
    background[:] = color
    canvas[:] = alpha_over(background, canvas)
    return canvas


def composite_masked(frame, mask, crop_box):
    """
    Cut the masked face out of a frame

    Parameters:
    - frame: Source Frame
    - mask: HxW uint8 mask of the same size as the frame
    - crop_box: BoundingBox of the face contour

    Returns:
    - RGBA array the size of the crop box: frame pixels where the mask is
      set, with alpha multiplied by the mask; transparent elsewhere
    """
    x, y, w, h = crop_box.pixel_rect(frame.width, frame.height)
    region = frame.pixels[y:y + h, x:x + w]
    mask_region = mask[y:y + h, x:x + w]

    result = np.zeros_like(region)
    inside = mask_region > 0
    result[..., :3] = np.where(inside[..., None], region[..., :3], 0)
    alpha = region[..., 3].astype(np.float32) * mask_region.astype(np.float32) / 255.0
    result[..., 3] = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)
    return result


def draw_frame(frame, zoom_rect, mirrored, viewport):
    """
    Draw a frame into a transparent canvas of ``viewport`` size

    Parameters:
    - frame: Source Frame
    - zoom_rect: (width, height, dx, dy) placement of the frame in the viewport
    - mirrored: Flip horizontally about the viewport's vertical centerline
    - viewport: (width, height) of the canvas

    Returns:
    - RGBA array of shape (viewport height, viewport width, 4)
    """
    view_w, view_h = viewport
    draw_w, draw_h, dx, dy = zoom_rect
    scale_x = draw_w / frame.width
    scale_y = draw_h / frame.height

    # Affine map between pixel centers of the frame and of the canvas
    offset_y = dy + 0.5 * (scale_y - 1.0)
    if mirrored:
        transform = np.float32([
            [-scale_x, 0, view_w - dx - 0.5 * scale_x - 0.5],
            [0, scale_y, offset_y],
        ])
    else:
        transform = np.float32([
            [scale_x, 0, dx + 0.5 * (scale_x - 1.0)],
            [0, scale_y, offset_y],
        ])

    return cv2.warpAffine(
        frame.pixels,
        transform,
        (view_w, view_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )


def resize_rgba(image, width, height):
    """Resize an RGBA image, skipping the work when the size already matches."""
    if image.shape[1] == width and image.shape[0] == height:
        return image
    shrinking = width < image.shape[1] or height < image.shape[0]
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(image, (width, height), interpolation=interpolation)


def draw_overlay(canvas, overlay):
    """Paint the overlay stretched to the canvas, on top of everything."""
    view_h, view_w = canvas.shape[:2]
    return alpha_over(canvas, resize_rgba(overlay, view_w, view_h))


def place_image(canvas, image, placement, mirrored=False):
    """Scale ``image`` into ``placement`` (x, y, w, h) and paint it over the canvas."""
    x, y, w, h = placement
    scaled = resize_rgba(image, w, h)
    if mirrored:
        scaled = cv2.flip(scaled, 1)
    return alpha_over(canvas, scaled, x, y)


def composite_live_capture(frame, zoom_rect, mirrored, overlay, viewport):
    """
    Compose a full-viewport capture: the (zoomed, mirrored) frame with the
    overlay painted right-reading on top

    Parameters:
    - frame: Source Frame
    - zoom_rect: (width, height, dx, dy) placement from the zoom step
    - mirrored: Mirror the frame (never the overlay)
    - overlay: RGBA overlay bitmap, stretched to the viewport
    - viewport: (width, height) of the result

    Returns:
    - RGBA array of viewport size
    """
    canvas = draw_frame(frame, zoom_rect, mirrored, viewport)
    return draw_overlay(canvas, overlay)
