"""
MapCanvas - Shows a georeferenced aerial image on a Tk canvas and converts
between canvas pixels and map positions under the current zoom and pan.
"""

import tkinter as tk
import numpy as np
import cv3
from PIL import Image, ImageTk

BACKGROUND = 64
MIN_ZOOM = 0.1
MAX_ZOOM = 10.0
ZOOM_STEP = 1.2
FIT_MARGIN = 0.98


class MapCanvas:
    """
    View state for one map on one canvas.

    The view is a uniform scale (fit scale times zoom) plus a pan offset in
    canvas pixels: ``canvas = image * scale + offset``.
    """

    def __init__(self, canvas, canvas_width, canvas_height):
        self.canvas = canvas
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height

        self.zoom_level = 1.0
        self.fit_scale = 1.0
        self.offset = np.zeros(2)
        self.recenter = False

        # Last pointer position of an active map drag
        self.drag_anchor = None

        self.georef = None

        # Tk drops images nobody references
        self.photo = None

    def set_georeference(self, georef):
        self.georef = georef

    def update_canvas_size(self, width, height):
        self.canvas_width = width
        self.canvas_height = height

    def reset_view(self):
        """Show the whole map, centered, at the fit scale"""
        self.zoom_level = 1.0
        self.offset = np.zeros(2)
        self.recenter = True

    @property
    def scale(self):
        return self.fit_scale * self.zoom_level

    # Zoom

    def _zoom_to(self, zoom_level, center_x, center_y):
        anchor = np.array([
            self.canvas_width / 2 if center_x is None else center_x,
            self.canvas_height / 2 if center_y is None else center_y,
        ], dtype=float)

        previous = self.zoom_level
        self.zoom_level = float(np.clip(zoom_level, MIN_ZOOM, MAX_ZOOM))

        # The map position under the anchor stays put
        self.offset = anchor - (anchor - self.offset) * (self.zoom_level / previous)

    def zoom_in(self, center_x=None, center_y=None):
        self._zoom_to(self.zoom_level * ZOOM_STEP, center_x, center_y)

    def zoom_out(self, center_x=None, center_y=None):
        self._zoom_to(self.zoom_level / ZOOM_STEP, center_x, center_y)

    def zoom_fit(self):
        self.reset_view()

    def get_zoom_percentage(self):
        """Displayed map pixels per image pixel, as a percentage"""
        return int(self.scale * 100)

    # Coordinates

    def canvas_to_image_coords(self, canvas_x, canvas_y):
        img_x, img_y = (np.array([canvas_x, canvas_y], dtype=float) - self.offset) / self.scale
        return float(img_x), float(img_y)

    def image_to_canvas_coords(self, img_x, img_y):
        canvas_x, canvas_y = np.array([img_x, img_y], dtype=float) * self.scale + self.offset
        return float(canvas_x), float(canvas_y)

    def unproject(self, canvas_x, canvas_y):
        """
        Convert a canvas pixel to a map position.

        Args:
            canvas_x: X relative to the canvas' own top-left corner
            canvas_y: Y relative to the canvas' own top-left corner

        Returns:
            GeoPoint (lng, lat)

        Raises:
            ValueError: No georeferenced map is loaded
        """
        if self.georef is None:
            raise ValueError("Map has no georeference")
        return self.georef.pixel_to_lnglat(*self.canvas_to_image_coords(canvas_x, canvas_y))

    def project(self, point):
        """Canvas pixel of a (lng, lat) point"""
        return self.image_to_canvas_coords(*self.georef.lnglat_to_pixel(point[0], point[1]))

    def project_all(self, points):
        """Project points to an (N, 2) int32 array of canvas pixels"""
        if not points:
            return np.zeros((0, 2), dtype=np.int32)
        return np.array([self.project(p) for p in points]).round().astype(np.int32)

    # Rendering

    def display_image(self, image_rgb, overlay_callback=None):
        """
        Render the visible part of the map and hand the frame to an overlay.

        Args:
            image_rgb: Map image as an RGB numpy array
            overlay_callback: optional function(frame) drawing shapes in
                              canvas pixel coordinates
        """
        if image_rgb is None:
            return

        map_h, map_w = image_rgb.shape[:2]
        self.fit_scale = min(self.canvas_width / map_w, self.canvas_height / map_h) * FIT_MARGIN

        scaled_w = max(1, int(map_w * self.scale))
        scaled_h = max(1, int(map_h * self.scale))
        scaled = cv3.resize(image_rgb, scaled_w, scaled_h)

        if self.recenter:
            self.offset = np.array([(self.canvas_width - scaled_w) / 2.0,
                                    (self.canvas_height - scaled_h) / 2.0])
            self.recenter = False

        frame = np.full((self.canvas_height, self.canvas_width, 3), BACKGROUND, dtype=np.uint8)
        self._blit(frame, scaled)

        if overlay_callback:
            overlay_callback(frame)

        self.photo = ImageTk.PhotoImage(image=Image.fromarray(frame))
        self.canvas.delete("all")
        self.canvas.create_image(0, 0, anchor=tk.NW, image=self.photo)

    def _blit(self, frame, scaled):
        """Copy the part of the scaled map that falls inside the frame"""
        dst_x, dst_y = (int(max(0, v)) for v in self.offset)
        src_x, src_y = (int(max(0, -v)) for v in self.offset)

        width = min(scaled.shape[1] - src_x, self.canvas_width - dst_x)
        height = min(scaled.shape[0] - src_y, self.canvas_height - dst_y)
        if width <= 0 or height <= 0:
            return
        frame[dst_y:dst_y + height, dst_x:dst_x + width] = \
            scaled[src_y:src_y + height, src_x:src_x + width]

    # Dragging the map

    def start_pan(self, x, y):
        self.drag_anchor = (x, y)

    def update_pan(self, x, y):
        """
        Move the map with the pointer.

        Returns:
            bool: True if the view changed
        """
        if self.drag_anchor is None:
            return False
        self.offset = self.offset + np.subtract((x, y), self.drag_anchor)
        self.drag_anchor = (x, y)
        return True

    def end_pan(self):
        self.drag_anchor = None
