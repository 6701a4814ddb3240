"""
Generate a synthetic aerial test image for TapMeasure
Creates a 1200x900 px "satellite" view at 0.1 m/px with:
- Grass background with a 10 m grey survey grid
- A rotated 30x20 m lot (600 sq m) drawn in tan
- A straight 25 m driveway edge
Writes a JSON sidecar with the image bounds so tapmeasure.py georeferences it
"""

import cv2
import numpy as np
import json
import os

from geomeasure import GeoReference, distance_meters, path_length_meters, polygon_area_meters, close_ring

# Configuration
CENTER = (-96.7970, 32.7767)
METERS_PER_PIXEL = 0.1
WIDTH_PX = 1200
HEIGHT_PX = 900

# Grid spacing
GRID_M = 10
GRID_PX = int(GRID_M / METERS_PER_PIXEL)

# Lot
LOT_WIDTH_M = 30
LOT_HEIGHT_M = 20
LOT_ANGLE = 12  # Degrees, positive = counter-clockwise

# Driveway edge
DRIVEWAY_M = 25

# Colors (BGR format for OpenCV)
GRASS_BG = (60, 120, 70)
GREY_GRID = (140, 140, 140)
LOT_FILL = (120, 170, 200)
LOT_EDGE = (40, 60, 80)
DRIVEWAY = (200, 200, 200)

print(f"Generating test image:")
print(f"  Size: {WIDTH_PX}x{HEIGHT_PX} px @ {METERS_PER_PIXEL} m/px")
print(f"  Center: {CENTER}")

georef = GeoReference.around(CENTER, METERS_PER_PIXEL, WIDTH_PX, HEIGHT_PX)

image = np.full((HEIGHT_PX, WIDTH_PX, 3), GRASS_BG, dtype=np.uint8)

for y in range(0, HEIGHT_PX, GRID_PX):
    cv2.line(image, (0, y), (WIDTH_PX, y), GREY_GRID, 1)
for x in range(0, WIDTH_PX, GRID_PX):
    cv2.line(image, (x, 0), (x, HEIGHT_PX), GREY_GRID, 1)

print(f"  [OK] Drew {GRID_M} m grid")

# Lot corners in pixels (rotated rectangle around the image center)
lot_rect = ((WIDTH_PX / 2, HEIGHT_PX / 2),
            (LOT_WIDTH_M / METERS_PER_PIXEL, LOT_HEIGHT_M / METERS_PER_PIXEL),
            -LOT_ANGLE)
lot_box = cv2.boxPoints(lot_rect)
cv2.drawContours(image, [lot_box.astype(int)], 0, LOT_FILL, -1)
cv2.drawContours(image, [lot_box.astype(int)], 0, LOT_EDGE, 2)

lot_lnglat = [georef.pixel_to_lnglat(float(x), float(y)) for x, y in lot_box]
lot_ring = close_ring(lot_lnglat)
lot_area = polygon_area_meters(lot_ring)
lot_perimeter = path_length_meters(lot_ring)

print(f"  [OK] Drew lot: {LOT_WIDTH_M}x{LOT_HEIGHT_M} m, measured {lot_area:.1f} sq m")

# Driveway edge along the bottom of the image
drive_start = (100, HEIGHT_PX - 100)
drive_end = (100 + int(DRIVEWAY_M / METERS_PER_PIXEL), HEIGHT_PX - 100)
cv2.line(image, drive_start, drive_end, DRIVEWAY, 6)

drive_lnglat = [georef.pixel_to_lnglat(*drive_start), georef.pixel_to_lnglat(*drive_end)]
drive_length = distance_meters(*drive_lnglat)

print(f"  [OK] Drew driveway edge: {DRIVEWAY_M} m, measured {drive_length:.2f} m")

test_dir = os.path.join(os.path.dirname(__file__), "..", "test")
os.makedirs(test_dir, exist_ok=True)

image_path = os.path.join(test_dir, "test_aerial.png")
cv2.imwrite(image_path, image)
print(f"\n[OK] Saved image: {image_path}")

metadata = georef.to_metadata()
metadata.update({
    "description": "Synthetic aerial image for TapMeasure",
    "meters_per_pixel": METERS_PER_PIXEL,
    "lot": {
        "size_m": [LOT_WIDTH_M, LOT_HEIGHT_M],
        "rotation_deg": LOT_ANGLE,
        "corners_px": lot_box.tolist(),
        "corners_lnglat": [list(p) for p in lot_lnglat],
        "area_sq_m": lot_area,
        "perimeter_m": lot_perimeter,
    },
    "driveway": {
        "length_m": DRIVEWAY_M,
        "endpoints_px": [list(drive_start), list(drive_end)],
        "measured_m": drive_length,
    },
})

metadata_path = os.path.join(test_dir, "test_aerial.json")
with open(metadata_path, 'w') as f:
    json.dump(metadata, f, indent=2)

print(f"[OK] Saved georeference and expected measurements: {metadata_path}")

print("\n" + "="*60)
print("Test image generation complete!")
print("="*60)
print(f"\nTo test the measuring tool:")
print(f"  python tapmeasure.py test/test_aerial.png")
print(f"\nExpected result: tapping the 4 lot corners and Done should show")
print(f"about {lot_area * 10.7639:,.0f} sq ft; the driveway about {drive_length * 3.28084:.1f} lin ft.")
