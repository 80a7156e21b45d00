"""
Inspector window: trackbars bound to the adjustment parameters plus the
two live output views.
"""

import cv2
import numpy as np

from hsv_inspector import Config, AdjustmentParameters, TRACKBARS


class InspectorWindow:
    """OpenCV presentation sink for the HSV inspector"""

    def __init__(self, params: AdjustmentParameters):
        self.params = params

        cv2.namedWindow(Config.WINDOW_NAME, cv2.WINDOW_AUTOSIZE)
        for label, field in TRACKBARS:
            cv2.createTrackbar(label, Config.WINDOW_NAME,
                               getattr(params, field),
                               params.domain(field),
                               self._on_change(field))

    def _on_change(self, field: str):
        def callback(pos: int):
            self.params.set(field, pos)
        return callback

    def sync_trackbars(self) -> None:
        """Move every trackbar to the current parameter value (after a reset)"""
        for label, field in TRACKBARS:
            cv2.setTrackbarPos(label, Config.WINDOW_NAME, getattr(self.params, field))

    def show(self, mask: np.ndarray, filtered: np.ndarray) -> None:
        cv2.imshow(Config.MASK_WINDOW, mask)
        cv2.imshow(Config.FILTERED_WINDOW, filtered)

    def poll_key(self, delay_ms: int) -> int:
        """
        Wait up to delay_ms for a key press.

        Returns:
            Key code masked to 8 bits, or -1 on timeout
        """
        key = cv2.waitKey(delay_ms)
        if key == -1:
            return -1
        return key & 0xFF

    def close(self) -> None:
        cv2.destroyAllWindows()
