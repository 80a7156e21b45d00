"""
HSV Inspector - Color-Space Transform Pipeline
Live HSV offset/range tuning for camera frames published in shared memory

Holds the configuration, the adjustable parameter set and the per-frame
transform-and-mask pipeline. Window handling lives in inspector_window.py,
shared memory access in frame_source.py and the interactive loop in
main_inspector.py.
"""

import tempfile
from dataclasses import dataclass, fields, asdict
from typing import Tuple, Dict

import cv2
import numpy as np

# =============================================================================
# CONFIGURATION & PARAMETERS
# =============================================================================

class Config:
    """Configuration parameters for the HSV inspector"""

    # Window names
    WINDOW_NAME = "Inspector"
    MASK_WINDOW = "Mask only"
    FILTERED_WINDOW = "Adjusted and masked"

    # Interactive loop
    WAIT_KEY_MS = 10            # Input wait per loop pass (milliseconds)
    QUIT_KEYS = (ord('q'), 27)  # 'q' or ESC
    RESET_KEY = ord('r')        # Restore all parameters to their defaults

    # 8-bit HSV channel maxima (OpenCV hue convention: 0-179)
    HUE_MAX = 179
    SAT_MAX = 255
    VAL_MAX = 255

    # Shared memory frame layout: 32-bit ARGB words, B,G,R,A bytes in memory
    CHANNELS = 4
    LOCK_DIRECTORY = tempfile.gettempdir()

    # Console output
    VERBOSE = False
    STATUS_INTERVAL = 100       # Frames between status lines in verbose mode


@dataclass
class AdjustmentParameters:
    """
    The twelve live-tunable values driving the pipeline.

    min/max fields bound the inclusive mask range per channel, add/sub
    fields shift the channel values before masking. Written by trackbar
    callbacks, read once per frame; no cross-field consistency is needed.
    """
    min_h: int = 0
    max_h: int = Config.HUE_MAX
    min_s: int = 0
    max_s: int = Config.SAT_MAX
    min_v: int = 0
    max_v: int = Config.VAL_MAX

    h_add: int = 0
    s_add: int = 0
    v_add: int = 0

    h_sub: int = 0
    s_sub: int = 0
    v_sub: int = 0

    @staticmethod
    def domain(field: str) -> int:
        """Upper bound of a field's valid range (lower bound is always 0)."""
        if field not in _FIELD_NAMES:
            raise KeyError(field)
        if field.endswith('_h') or field.startswith('h_'):
            return Config.HUE_MAX
        if field.endswith('_s') or field.startswith('s_'):
            return Config.SAT_MAX
        return Config.VAL_MAX

    def set(self, field: str, value: int) -> None:
        """Store value clamped into the field's domain."""
        upper = self.domain(field)
        setattr(self, field, min(max(int(value), 0), upper))

    def reset(self) -> None:
        """Restore defaults in place so bound widgets keep their reference."""
        for f in fields(self):
            setattr(self, f.name, f.default)

    def lower(self) -> Tuple[int, int, int]:
        return (self.min_h, self.min_s, self.min_v)

    def upper(self) -> Tuple[int, int, int]:
        return (self.max_h, self.max_s, self.max_v)

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


_FIELD_NAMES = frozenset(f.name for f in fields(AdjustmentParameters))

# Trackbar layout: (label, parameter field), in display order
TRACKBARS = [
    ("Hue (min)", "min_h"),
    ("Hue (max)", "max_h"),
    ("Sat (min)", "min_s"),
    ("Sat (max)", "max_s"),
    ("Val (min)", "min_v"),
    ("Val (max)", "max_v"),
    ("Hadd", "h_add"),
    ("Sadd", "s_add"),
    ("Vadd", "v_add"),
    ("Hsub", "h_sub"),
    ("Ssub", "s_sub"),
    ("Vsub", "v_sub"),
]

# =============================================================================
# TRANSFORM PIPELINE
# =============================================================================

def adjust_plane(plane: np.ndarray, sub: int, add: int, max_value: int) -> np.ndarray:
    """
    Shift one 8-bit channel plane: subtract, clamp at 0, add, clamp at max_value.

    Args:
        plane: Single-channel uint8 plane
        sub: Amount subtracted first
        add: Amount added after the floor clamp
        max_value: Channel ceiling (179 for hue, 255 otherwise)

    Returns:
        Adjusted uint8 plane of the same shape
    """
    # int16 holds [-255, 510] without wraparound
    widened = plane.astype(np.int16)
    adjusted = np.minimum(np.maximum(widened - sub, 0) + add, max_value)
    return adjusted.astype(np.uint8)


class HSVPipeline:
    """
    Per-frame transform: BGRA snapshot -> HSV -> offsets -> mask -> display.
    Stateless apart from the fixed frame dimensions.
    """

    def __init__(self, width: int, height: int):
        self.frame_width = width
        self.frame_height = height

    def _check_snapshot(self, snapshot: np.ndarray) -> None:
        expected = (self.frame_height, self.frame_width, Config.CHANNELS)
        if snapshot.shape != expected or snapshot.dtype != np.uint8:
            raise ValueError(
                f"Snapshot must be uint8 with shape {expected}, "
                f"got {snapshot.dtype} {snapshot.shape}"
            )

    def to_hsv(self, snapshot: np.ndarray) -> np.ndarray:
        """Drop alpha and convert to 8-bit HSV"""
        bgr = cv2.cvtColor(snapshot, cv2.COLOR_BGRA2BGR)
        return cv2.cvtColor(bgr, cv2.COLOR_BGR2HSV)

    def apply_offsets(self, hsv: np.ndarray, params: AdjustmentParameters) -> np.ndarray:
        """Apply the sub/add offsets to each channel independently"""
        h, s, v = cv2.split(hsv)

        h = adjust_plane(h, params.h_sub, params.h_add, Config.HUE_MAX)
        s = adjust_plane(s, params.s_sub, params.s_add, Config.SAT_MAX)
        v = adjust_plane(v, params.v_sub, params.v_add, Config.VAL_MAX)

        return cv2.merge([h, s, v])

    def compute_mask(self, hsv: np.ndarray, params: AdjustmentParameters) -> np.ndarray:
        """
        Binary mask (0/255) of pixels whose adjusted H, S and V all fall in
        their inclusive [min, max] ranges. min > max yields an empty mask.
        """
        return cv2.inRange(hsv, params.lower(), params.upper())

    def render(self, hsv: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Convert back to BGR and keep only the masked pixels (zero background)"""
        adjusted_bgr = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)
        return cv2.bitwise_and(adjusted_bgr, adjusted_bgr, mask=mask)

    def process(self, snapshot: np.ndarray,
                params: AdjustmentParameters) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run the full pipeline on one snapshot.

        Args:
            snapshot: Owned (height, width, 4) uint8 copy of the shared frame
            params: Current adjustment parameters (read only)

        Returns:
            (mask, filtered) both height x width
        """
        self._check_snapshot(snapshot)

        # Step 1: Forward color conversion
        hsv = self.to_hsv(snapshot)

        # Step 2: Split, widen, subtract/add with clamping, narrow, merge
        hsv = self.apply_offsets(hsv, params)

        # Step 3: Range mask on the adjusted values
        mask = self.compute_mask(hsv, params)

        # Step 4: Reverse conversion and masked copy for display
        filtered = self.render(hsv, mask)

        return mask, filtered
