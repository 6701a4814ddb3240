"""
TapMeasure - Interactive Area & Distance Measuring Tool
Tap the corners of a lot on an aerial image to measure its area, or tap points
along a run to measure its length, then price the measurement.
Features: Zoom, Pan, tap/pan disambiguation, synced sq ft / lin ft / sq yd / acre boxes
"""

import argparse
import logging
import os
import cv2  # For translucent fills
import cv3  # For basic I/O and drawing operations
import numpy as np
import tkinter as tk
from tkinter import filedialog, ttk  # Convenience imports for dialogs and themed widgets
from PIL import Image
from pillow_heif import register_heif_opener  # For HEIC file support

from geomeasure import DrawingError, DrawingMode, GestureKind, GeoReference, LineItem, MeasurementEngine
from geomeasure.map_canvas import MapCanvas
from geomeasure.models import UNITS
from geomeasure.pricing import (
    display_measurement,
    format_money,
    format_quantity,
    price_per_other_units,
    quote_total,
    resolve_price,
    unit_label,
    use_measurement,
)
from geomeasure.projection import parse_bounds, parse_point
from geomeasure.unit_sync import DEFAULT_DEBOUNCE_MS, parse_quantity

# Register HEIF opener with Pillow to enable HEIC support
register_heif_opener()

# Default map center (Dallas, TX) and backdrop resolution when no image is loaded
DEFAULT_CENTER = "-96.7970,32.7767"
BACKDROP_SIZE = 1024
BACKDROP_METERS_PER_PIXEL = 0.25
BACKDROP_GRID_PX = 40  # 10 m at 0.25 m/px

SHAPE_COLOR = (232, 160, 32)
POINT_OUTLINE = (255, 255, 255)


def make_backdrop(size=BACKDROP_SIZE, grid_px=BACKDROP_GRID_PX):
    """Plain grid image used when no aerial image is loaded"""
    image = np.full((size, size, 3), (70, 90, 70), dtype=np.uint8)
    image[::grid_px, :] = (110, 130, 110)
    image[:, ::grid_px] = (110, 130, 110)
    return image


def load_georeference(image_path, width, height, bounds=None):
    """
    Find the georeference for an image: explicit bounds, else a JSON sidecar.

    Raises:
        ValueError: No georeference available
    """
    if bounds is not None:
        return GeoReference(bounds, width, height)
    sidecar = os.path.splitext(image_path)[0] + ".json"
    if os.path.exists(sidecar):
        return GeoReference.from_metadata(sidecar, width, height)
    raise ValueError("No georeference: pass --bounds or provide a .json sidecar")


class TapMeasureGUI:
    def __init__(self, root, mode="area", center=DEFAULT_CENTER, bounds=None,
                 tap_distance=12, tap_time=500, debounce=DEFAULT_DEBOUNCE_MS):
        self.root = root
        self.root.title("TapMeasure")

        # State variables
        self.image = None
        self.bounds = bounds
        self.preview = None
        self.geometry = None
        self.start_mode = DrawingMode(mode)

        # Canvas dimensions (will be set in setup_ui)
        self.canvas_width = 800
        self.canvas_height = 600
        self.map_canvas = None

        # Gesture thresholds and debounce (editable in Preferences)
        self.tap_distance_var = tk.StringVar(value=str(tap_distance))
        self.tap_time_var = tk.StringVar(value=str(tap_time))
        self.debounce_var = tk.StringVar(value=str(debounce))

        # Unit boxes
        self.unit_vars = {}
        self._updating_units = False  # Flag to prevent callback during programmatic updates

        # Quote line item
        self.line_item = LineItem(type="", area=0.0, unit="sqft", price=0.0, qty=1)

        self.engine = MeasurementEngine(
            unproject=self.unproject,
            on_preview=self.on_preview,
            on_geometry=self.on_geometry,
            on_display=self.on_unit_display,
            schedule=self.root.after,
            cancel=self.root.after_cancel,
            debounce_ms=debounce,
            tap_distance=tap_distance,
            tap_time=tap_time,
        )

        self.setup_ui()
        self.show_backdrop(parse_point(center))

    def setup_ui(self):
        # Canvas takes 60% of the screen width, 75% of the height
        screen_width = self.root.winfo_screenwidth()
        screen_height = self.root.winfo_screenheight()
        self.canvas_width = max(500, int(screen_width * 0.6))
        self.canvas_height = max(400, int(screen_height * 0.75))

        # Menu Bar
        menubar = tk.Menu(self.root)
        self.root.config(menu=menubar)

        file_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="File", menu=file_menu)
        file_menu.add_command(label="Load Aerial Image...", command=self.load_image, accelerator="Ctrl+O")
        file_menu.add_separator()
        file_menu.add_command(label="Preferences...", command=self.show_preferences)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.root.quit, accelerator="Alt+F4")

        # Bind keyboard shortcuts
        self.root.bind('<Control-o>', lambda e: self.load_image())
        self.root.bind('<Control-z>', lambda e: self.undo_last_point())
        self.root.bind('<Escape>', lambda e: self.cancel_drawing())

        # Map canvas
        map_frame = ttk.Frame(self.root)
        map_frame.grid(row=0, column=0, padx=5, pady=5, sticky=(tk.W, tk.E, tk.N, tk.S))

        self.canvas = tk.Canvas(map_frame, bg='gray', cursor="crosshair",
                                width=self.canvas_width, height=self.canvas_height,
                                highlightthickness=0)
        self.canvas.pack(fill=tk.BOTH, expand=True)
        self.map_canvas = MapCanvas(self.canvas, self.canvas_width, self.canvas_height)

        # Drawing tools overlay (upper left corner of the map)
        tools_overlay = ttk.Frame(map_frame, relief=tk.RAISED, borderwidth=1)
        tools_overlay.place(relx=0.0, rely=0.0, x=5, y=5, anchor=tk.NW)

        ttk.Button(tools_overlay, text="Area", width=6,
                   command=lambda: self.start_drawing(DrawingMode.AREA)).pack(side=tk.LEFT, padx=1)
        ttk.Button(tools_overlay, text="Line", width=6,
                   command=lambda: self.start_drawing(DrawingMode.LINE)).pack(side=tk.LEFT, padx=1)
        ttk.Button(tools_overlay, text="Undo", command=self.undo_last_point, width=6).pack(side=tk.LEFT, padx=1)
        ttk.Button(tools_overlay, text="Done", command=self.finish_drawing, width=6).pack(side=tk.LEFT, padx=1)
        ttk.Button(tools_overlay, text="Cancel", command=self.cancel_drawing, width=7).pack(side=tk.LEFT, padx=1)
        ttk.Button(tools_overlay, text="Clear", command=self.clear_drawing, width=6).pack(side=tk.LEFT, padx=1)

        # Zoom controls overlay (upper right corner of the map)
        zoom_overlay = ttk.Frame(map_frame, relief=tk.RAISED, borderwidth=1)
        zoom_overlay.place(relx=1.0, rely=0.0, x=-5, y=5, anchor=tk.NE)

        ttk.Button(zoom_overlay, text="+", command=self.zoom_in, width=3).pack(side=tk.LEFT, padx=1)
        ttk.Button(zoom_overlay, text="-", command=self.zoom_out, width=3).pack(side=tk.LEFT, padx=1)
        ttk.Button(zoom_overlay, text="Fit", command=self.zoom_fit, width=4).pack(side=tk.LEFT, padx=1)
        self.zoom_label = ttk.Label(zoom_overlay, text="100%", width=5)
        self.zoom_label.pack(side=tk.LEFT, padx=3)

        # Bind events
        self.canvas.bind("<ButtonPress-1>", self.on_canvas_press)
        self.canvas.bind("<B1-Motion>", self.on_canvas_drag)
        self.canvas.bind("<ButtonRelease-1>", self.on_canvas_release)
        self.canvas.bind("<ButtonPress-3>", self.on_canvas_press)
        self.canvas.bind("<B3-Motion>", self.on_canvas_drag)
        self.canvas.bind("<ButtonRelease-3>", self.on_canvas_release)
        self.canvas.bind("<MouseWheel>", self.on_mouse_wheel)
        self.canvas.bind("<Configure>", self.on_canvas_resize)

        # Measurement panel
        panel = ttk.Frame(self.root, padding="10")
        panel.grid(row=0, column=1, sticky=(tk.N, tk.S))

        ttk.Label(panel, text="Measurement", font=('TkDefaultFont', 10, 'bold')).grid(
            row=0, column=0, columnspan=2, sticky=tk.W, pady=(0, 5))

        for row, unit in enumerate(UNITS, start=1):
            ttk.Label(panel, text=f"{unit_label(unit)}:").grid(row=row, column=0, sticky=tk.E, padx=(0, 5), pady=2)
            var = tk.StringVar(value="")
            var.trace_add('write', lambda *args, u=unit: self.on_unit_changed(u))
            entry = ttk.Entry(panel, textvariable=var, width=14)
            entry.grid(row=row, column=1, sticky=tk.W, pady=2)
            entry.bind("<FocusIn>", lambda e, u=unit: self.engine.set_focus(u))
            entry.bind("<FocusOut>", lambda e: self.engine.set_focus(None))
            self.unit_vars[unit] = var

        ttk.Separator(panel).grid(row=5, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=10)

        ttk.Label(panel, text="Quote", font=('TkDefaultFont', 10, 'bold')).grid(
            row=6, column=0, columnspan=2, sticky=tk.W, pady=(0, 5))

        ttk.Label(panel, text="Job type:").grid(row=7, column=0, sticky=tk.E, padx=(0, 5))
        self.job_type_var = tk.StringVar(value="")
        ttk.Entry(panel, textvariable=self.job_type_var, width=14).grid(row=7, column=1, sticky=tk.W, pady=2)

        ttk.Label(panel, text="Unit:").grid(row=8, column=0, sticky=tk.E, padx=(0, 5))
        self.quote_unit_var = tk.StringVar(value="sqft")
        ttk.Combobox(panel, textvariable=self.quote_unit_var, values=list(UNITS),
                     state="readonly", width=12).grid(row=8, column=1, sticky=tk.W, pady=2)

        ttk.Label(panel, text="Price / unit ($):").grid(row=9, column=0, sticky=tk.E, padx=(0, 5))
        self.price_var = tk.StringVar(value="")
        ttk.Entry(panel, textvariable=self.price_var, width=14).grid(row=9, column=1, sticky=tk.W, pady=2)

        ttk.Label(panel, text="Markup (%):").grid(row=10, column=0, sticky=tk.E, padx=(0, 5))
        self.markup_var = tk.StringVar(value="0")
        ttk.Entry(panel, textvariable=self.markup_var, width=14).grid(row=10, column=1, sticky=tk.W, pady=2)

        ttk.Label(panel, text="Qty:").grid(row=11, column=0, sticky=tk.E, padx=(0, 5))
        self.qty_var = tk.StringVar(value="1")
        ttk.Spinbox(panel, textvariable=self.qty_var, from_=1, to=999, increment=1,
                    width=12).grid(row=11, column=1, sticky=tk.W, pady=2)

        for var in (self.quote_unit_var, self.price_var, self.markup_var, self.qty_var):
            var.trace_add('write', lambda *args: self.update_calc())

        ttk.Button(panel, text="Use Measurement", command=self.use_measurement).grid(
            row=12, column=0, columnspan=2, pady=(8, 4))

        self.total_label = ttk.Label(panel, text="$0.00", font=('TkDefaultFont', 14, 'bold'))
        self.total_label.grid(row=13, column=0, columnspan=2, pady=(4, 0))
        self.breakdown_label = ttk.Label(panel, text="", foreground="gray")
        self.breakdown_label.grid(row=14, column=0, columnspan=2)
        self.per_unit_label = ttk.Label(panel, text="", foreground="gray", justify=tk.LEFT)
        self.per_unit_label.grid(row=15, column=0, columnspan=2, sticky=tk.W, pady=(8, 0))

        # Status Bar at bottom
        status_frame = ttk.Frame(self.root, relief=tk.SUNKEN, padding="2")
        status_frame.grid(row=1, column=0, columnspan=2, sticky=(tk.W, tk.E))

        self.status_label = ttk.Label(status_frame, text="Choose Area or Line to start measuring", anchor=tk.W)
        self.status_label.pack(fill=tk.X)

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

    # Map image

    def show_backdrop(self, center):
        """Show the grid backdrop georeferenced around a point"""
        self.image = make_backdrop()
        height, width = self.image.shape[:2]
        self.map_canvas.set_georeference(
            GeoReference.around(center, BACKDROP_METERS_PER_PIXEL, width, height))
        self.map_canvas.reset_view()
        self.redraw()

    def load_image(self):
        file_path = filedialog.askopenfilename(
            title="Select Aerial Image",
            filetypes=[("Image files", "*.jpg *.jpeg *.png *.bmp *.heic *.heif"), ("All files", "*.*")]
        )

        if file_path:
            self.load_image_from_path(file_path)

    def load_image_from_path(self, file_path):
        """Load a georeferenced aerial image from the given file path"""
        is_heic = file_path.lower().endswith(('.heic', '.heif'))

        if is_heic:
            # Load HEIC with PIL/pillow-heif, then convert to numpy array
            try:
                image = np.array(Image.open(file_path).convert('RGB'))
            except Exception as e:
                self.status_label.config(text=f"Error: Could not load HEIC image - {e}")
                return
        else:
            # cv3 loads images in RGB by default (no conversion needed)
            image = cv3.imread(file_path)
            if image is None:
                self.status_label.config(text="Error: Could not load image")
                return

        height, width = image.shape[:2]
        try:
            georef = load_georeference(file_path, width, height, self.bounds)
        except (ValueError, KeyError, OSError) as e:
            self.status_label.config(text=f"Error: {e}")
            return

        logging.info(f"Loaded {file_path} ({width}x{height}, bounds {georef.bounds})")

        # A new map invalidates any drawing on the old one
        self.engine.clear_drawing()
        self.image = image
        self.map_canvas.set_georeference(georef)
        self.map_canvas.reset_view()
        self.redraw()
        self.status_label.config(
            text=f"Image loaded ({georef.meters_per_pixel():.2f} m/px). Choose Area or Line, then tap points. "
                 "Drag to pan, scroll to zoom.")

    def unproject(self, x, y):
        return self.map_canvas.unproject(x, y)

    # Drawing

    def start_drawing(self, mode):
        self.engine.start_drawing(mode)
        self.update_status()

    def undo_last_point(self):
        if self.engine.undo_last_point() is not None:
            self.update_status()

    def finish_drawing(self):
        if not self.engine.is_drawing():
            return
        try:
            geometry = self.engine.finish_drawing()
        except DrawingError as e:
            self.status_label.config(text=str(e))
            return

        logging.debug(f"Finished geometry: {geometry.to_geojson()}")
        self.quote_unit_var.set("sqft" if geometry.is_polygon else "linft")
        self.update_status()

    def cancel_drawing(self):
        if self.engine.is_drawing():
            self.engine.cancel_drawing()
            self.status_label.config(text="Drawing cancelled")

    def clear_drawing(self):
        self.engine.clear_drawing()
        self.update_calc()
        self.status_label.config(text="Cleared. Choose Area or Line to start measuring")

    def update_status(self):
        self.status_label.config(text=self.engine.get_status_message())

    def on_preview(self, preview):
        self.preview = preview
        self.redraw()

    def on_geometry(self, geometry):
        self.geometry = geometry
        self.redraw()

    # Canvas events

    def on_canvas_press(self, event):
        button = event.num - 1
        self.engine.on_pointer_down(event.x, event.y, event.time, button)
        # A press that travels pans the map; the classifier decides whether it was a tap
        self.map_canvas.start_pan(event.x, event.y)

    def on_canvas_drag(self, event):
        if self.map_canvas.update_pan(event.x, event.y):
            self.canvas.config(cursor="fleur")
            self.redraw()

    def on_canvas_release(self, event):
        self.map_canvas.end_pan()
        self.canvas.config(cursor="crosshair")

        target = event.widget.winfo_containing(event.x_root, event.y_root)
        kind, _ = self.engine.on_pointer_up(
            event.x, event.y, event.time, event.num - 1, target_is_canvas=target is self.canvas)
        if kind is GestureKind.TAP:
            self.update_status()

    def on_mouse_wheel(self, event):
        """Handle mouse wheel zoom centered on cursor"""
        if event.delta > 0:
            self.zoom_in(event.x, event.y)
        else:
            self.zoom_out(event.x, event.y)

    def on_canvas_resize(self, event):
        self.map_canvas.update_canvas_size(event.width, event.height)
        self.redraw()

    def zoom_in(self, center_x=None, center_y=None):
        self.map_canvas.zoom_in(center_x, center_y)
        self.redraw()

    def zoom_out(self, center_x=None, center_y=None):
        self.map_canvas.zoom_out(center_x, center_y)
        self.redraw()

    def zoom_fit(self):
        self.map_canvas.zoom_fit()
        self.redraw()

    def redraw(self):
        if self.image is None or self.map_canvas is None:
            return
        self.map_canvas.display_image(self.image, overlay_callback=self.draw_overlay)
        self.zoom_label.config(text=f"{self.map_canvas.get_zoom_percentage()}%")

    def draw_overlay(self, canvas_image):
        """Draw the finished shape and the live drawing preview"""
        if self.geometry is not None:
            pts = self.map_canvas.project_all(self.geometry.points)
            if self.geometry.is_polygon:
                self._fill(canvas_image, pts, 0.2)
            self._polyline(canvas_image, pts, 3)

        if self.preview is not None and self.preview.points:
            pts = self.map_canvas.project_all(self.preview.points)
            if self.preview.closed:
                self._fill(canvas_image, pts, 0.18)
                pts = np.vstack([pts, pts[:1]])
            self._polyline(canvas_image, pts, 2)

            for x, y in pts:
                cv3.circle(canvas_image, int(x), int(y), 6, color=POINT_OUTLINE, t=2)
                cv3.circle(canvas_image, int(x), int(y), 5, color=SHAPE_COLOR, fill=True)

    def _polyline(self, canvas_image, pts, thickness):
        for (x0, y0), (x1, y1) in zip(pts[:-1], pts[1:]):
            cv3.line(canvas_image, int(x0), int(y0), int(x1), int(y1), color=SHAPE_COLOR, t=thickness)

    def _fill(self, canvas_image, pts, alpha):
        overlay = canvas_image.copy()
        cv2.fillPoly(overlay, [pts.reshape(-1, 1, 2)], SHAPE_COLOR)
        canvas_image[:] = cv2.addWeighted(overlay, alpha, canvas_image, 1 - alpha, 0)

    # Unit boxes

    def on_unit_changed(self, unit):
        """Called when a unit box is modified"""
        # Only user edits count, not our own refreshes
        if self._updating_units:
            return
        self.engine.on_measurement_input(unit, self.unit_vars[unit].get())

    def on_unit_display(self, unit, value):
        self._updating_units = True
        try:
            self.unit_vars[unit].set(format_quantity(value, unit))
        finally:
            self._updating_units = False
        self.update_calc()

    # Quote

    def current_price(self):
        markup = parse_quantity(self.markup_var.get()) or 0
        return resolve_price(manual=parse_quantity(self.price_var.get()), markup_pct=markup)

    def use_measurement(self):
        try:
            self.line_item = use_measurement(
                self.line_item._replace(type=self.job_type_var.get(), price=self.current_price(),
                                        qty=int(parse_quantity(self.qty_var.get()) or 1)),
                self.engine.get_all_measurements(),
                unit=self.quote_unit_var.get())
        except ValueError as e:
            self.status_label.config(text=f"Error: {e}")
            return
        self.status_label.config(
            text=f"Line item: {format_quantity(self.line_item.area, self.line_item.unit)} "
                 f"{unit_label(self.line_item.unit)}")
        self.update_calc()

    def update_calc(self):
        """Recompute the quote total and the per-unit helper"""
        unit = self.quote_unit_var.get()
        try:
            price = self.current_price()
        except ValueError as e:
            self.breakdown_label.config(text=str(e))
            return

        qty = parse_quantity(self.qty_var.get()) or 1
        quantity = display_measurement(self.engine.get_measurement(), unit)
        total_quantity, total = quote_total(quantity, qty, price)

        self.total_label.config(text=format_money(total))
        self.breakdown_label.config(
            text=f"{format_quantity(total_quantity, unit)} {unit_label(unit)} x {format_money(price)}")

        others = price_per_other_units(price, unit)
        lines = [f"{format_money(v)} / {unit_label(u)}" for u, v in others.items()
                 if v is not None and u != unit]
        self.per_unit_label.config(text="\n".join(lines))

    # Preferences

    def show_preferences(self):
        """Show the preferences dialog"""
        dialog = tk.Toplevel(self.root)
        dialog.title("Preferences")
        dialog.transient(self.root)
        dialog.grab_set()
        dialog.resizable(False, False)

        content_frame = ttk.Frame(dialog, padding="20")
        content_frame.pack(fill=tk.BOTH, expand=True)

        fields = [
            ("Tap distance (px):", self.tap_distance_var),
            ("Tap time (ms):", self.tap_time_var),
            ("Recalc delay (ms):", self.debounce_var),
        ]
        for row, (label, var) in enumerate(fields):
            ttk.Label(content_frame, text=label).grid(row=row, column=0, sticky=tk.W, pady=5)
            ttk.Entry(content_frame, textvariable=var, width=10).grid(row=row, column=1, padx=10, pady=5)

        button_frame = ttk.Frame(content_frame)
        button_frame.grid(row=len(fields), column=0, columnspan=2, pady=(15, 0))

        def on_ok():
            try:
                tap_distance = int(self.tap_distance_var.get())
                tap_time = int(self.tap_time_var.get())
                debounce = int(self.debounce_var.get())
                if tap_distance < 1 or tap_time < 1 or debounce < 0:
                    raise ValueError("Values must be positive")
            except ValueError:
                self.status_label.config(text="Error: Invalid preference value")
                return
            self.engine.gestures.set_thresholds(tap_distance, tap_time)
            self.engine.units.debounce_ms = debounce
            dialog.destroy()

        def on_cancel():
            dialog.destroy()

        ttk.Button(button_frame, text="OK", command=on_ok, width=10).pack(side=tk.LEFT, padx=5)
        ttk.Button(button_frame, text="Cancel", command=on_cancel, width=10).pack(side=tk.LEFT, padx=5)

        dialog.bind('<Return>', lambda e: on_ok())
        dialog.bind('<Escape>', lambda e: on_cancel())

        self.root.wait_window(dialog)


def main():
    parser = argparse.ArgumentParser(description='TapMeasure - Interactive Area & Distance Measuring Tool')
    parser.add_argument('image', nargs='?', help='Aerial image file to load on startup')
    parser.add_argument('--bounds', type=parse_bounds, default=None,
                        help='Image bounds as WEST,SOUTH,EAST,NORTH (default: read <image>.json)')
    parser.add_argument('--center', default=DEFAULT_CENTER,
                        help=f'LNG,LAT of the grid backdrop when no image is given (default: {DEFAULT_CENTER})')
    parser.add_argument('--mode', choices=['area', 'line'], default='area',
                        help='Drawing tool started on launch (default: area)')
    parser.add_argument('--tap-distance', type=int, default=12,
                        help='Max pointer movement in pixels still counted as a tap (default: 12)')
    parser.add_argument('--tap-time', type=int, default=500,
                        help='Max press duration in milliseconds still counted as a tap (default: 500)')
    parser.add_argument('--debounce', type=int, default=DEFAULT_DEBOUNCE_MS,
                        help=f'Delay before unit boxes recalculate, in ms (default: {DEFAULT_DEBOUNCE_MS})')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='WARNING',
                        help='Logging verbosity (default: WARNING)')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(message)s')

    root = tk.Tk()
    app = TapMeasureGUI(root, mode=args.mode, center=args.center, bounds=args.bounds,
                        tap_distance=args.tap_distance, tap_time=args.tap_time, debounce=args.debounce)

    # Load image if provided via command line
    if args.image:
        # Ensure UI is fully initialized before loading image
        root.update_idletasks()
        app.load_image_from_path(args.image)

    app.start_drawing(app.start_mode)
    root.mainloop()


if __name__ == "__main__":
    main()
